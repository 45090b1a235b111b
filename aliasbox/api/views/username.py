from flask import g, jsonify, request

from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.api.serializer import custom_username_to_dict, sending_identity_to_dict
from aliasbox.custom_username_utils import CustomUsernameRegistry
from aliasbox.extensions import get_db


@api_bp.route("/usernames", methods=["GET"])
@require_api_auth
def get_usernames():
    """
    Output:
        usernames: the primary email, flagged is_default, then the custom usernames
    """
    result = CustomUsernameRegistry(get_db()).list_sending_identities(g.user)
    if not result.success:
        return error_response(result)

    return jsonify(usernames=[sending_identity_to_dict(i) for i in result.data]), 200


@api_bp.route("/usernames", methods=["POST"])
@require_api_auth
def create_username():
    """
    Input:
        username: an email address
        description (optional)
    Output:
        201 with the username
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    result = CustomUsernameRegistry(get_db()).create_username(
        g.user, data.get("username"), data.get("description")
    )
    if not result.success:
        return error_response(result)

    return jsonify(username=custom_username_to_dict(result.data)), 201


@api_bp.route("/usernames/<username_id>", methods=["PATCH"])
@require_api_auth
def update_username(username_id):
    """
    In body:
        description (optional)
        is_active (optional): boolean
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    user = g.user
    registry = CustomUsernameRegistry(get_db())
    result = None

    if "description" in data:
        result = registry.update_username(user, username_id, data.get("description"))
        if not result.success:
            return error_response(result)

    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            return jsonify(error="is_active must be a boolean"), 400
        result = registry.set_username_active(user, username_id, data["is_active"])
        if not result.success:
            return error_response(result)

    if result is None:
        return jsonify(error="Nothing to update"), 400

    return jsonify(username=custom_username_to_dict(result.data)), 200


@api_bp.route("/usernames/<username_id>", methods=["DELETE"])
@require_api_auth
def delete_username(username_id):
    result = CustomUsernameRegistry(get_db()).delete_username(g.user, username_id)
    return message_response(result, deleted=result.success)
