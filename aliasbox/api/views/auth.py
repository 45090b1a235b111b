from flask import g, jsonify, request

from aliasbox import config
from aliasbox.account_utils import AccountService
from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.api.serializer import auth_session_to_dict
from aliasbox.extensions import get_db, get_request_token, limiter
from aliasbox.log import LOG


@api_bp.route("/auth/register", methods=["POST"])
@limiter.limit("10/minute")
def auth_register():
    """
    User signs up
    Input:
        email
        password
    Output:
        201 {message}
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    if config.DISABLE_REGISTRATION:
        return jsonify(error="registration is closed"), 400

    result = AccountService(get_db()).signup(data.get("email"), data.get("password"))
    return message_response(result, 201)


@api_bp.route("/auth/login", methods=["POST"])
@limiter.limit("10/minute")
def auth_login():
    """
    Authenticate user
    Input:
        email
        password
    Output:
        200 {session_token} and the session cookie
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    result = AccountService(get_db()).login(
        data.get("email"),
        data.get("password"),
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.headers.get("X-Forwarded-For") or request.remote_addr,
    )
    if not result.success:
        return error_response(result)

    res = jsonify(session_token=result.data)
    res.set_cookie(
        config.SESSION_COOKIE_NAME,
        result.data,
        max_age=config.SESSION_LIFETIME_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="Lax",
    )
    return res, 200


@api_bp.route("/auth/logout", methods=["POST"])
def auth_logout():
    """Always succeeds, even without a valid session"""
    result = AccountService(get_db()).logout(get_request_token())
    if not result.success:
        return error_response(result)

    res = jsonify(message=result.message)
    res.delete_cookie(config.SESSION_COOKIE_NAME)
    return res, 200


@api_bp.route("/auth/logout_others", methods=["POST"])
@require_api_auth
def auth_logout_others():
    user = g.user
    result = AccountService(get_db()).logout_all_others(user, g.session_token)
    LOG.i("%s logged out %s other sessions", user, result.data)
    return message_response(result, nb_session_deleted=result.data)


@api_bp.route("/sessions", methods=["GET"])
@require_api_auth
def get_sessions():
    """
    Output:
        current_session: the session of this request
        other_sessions: list of the other unexpired sessions, newest first
    """
    result = AccountService(get_db()).list_sessions(g.user, g.session_token)
    if not result.success:
        return error_response(result)

    current, others = result.data
    return (
        jsonify(
            current_session=auth_session_to_dict(current) if current else None,
            other_sessions=[auth_session_to_dict(s) for s in others],
        ),
        200,
    )
