from flask import g, jsonify, request

from aliasbox import config
from aliasbox.account_utils import AccountService
from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.extensions import get_db, limiter
from aliasbox.user_settings import UserSettingsService


@api_bp.route("/profile", methods=["GET"])
@require_api_auth
def get_profile():
    """
    Output:
        email, display_name, first_name, last_name, theme
    """
    result = UserSettingsService(get_db()).get_profile(g.user)
    if not result.success:
        return error_response(result)

    return jsonify(result.data)


@api_bp.route("/profile", methods=["PATCH"])
@require_api_auth
def update_profile():
    """
    Input:
        display_name: required
        first_name, last_name: optional
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    service = UserSettingsService(get_db())
    result = service.update_profile(
        g.user,
        data.get("display_name"),
        data.get("first_name"),
        data.get("last_name"),
    )
    if not result.success:
        return error_response(result)

    return message_response(result, **service.get_profile(g.user).data)


@api_bp.route("/profile/password", methods=["POST"])
@require_api_auth
@limiter.limit("10/minute")
def change_password():
    """
    Input:
        current_password, new_password, confirm_password
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    result = AccountService(get_db()).change_password(
        g.user,
        data.get("current_password"),
        data.get("new_password"),
        data.get("confirm_password"),
    )
    return message_response(result)


@api_bp.route("/user", methods=["DELETE"])
@require_api_auth
def delete_user():
    """
    Delete the user and everything they own
    """
    result = AccountService(get_db()).delete_account(g.user)
    if not result.success:
        return error_response(result)

    res = jsonify(ok=True, message=result.message)
    res.delete_cookie(config.SESSION_COOKIE_NAME)
    return res, 200
