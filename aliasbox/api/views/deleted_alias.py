from flask import g, jsonify, request

from aliasbox.alias_delete import AliasLifecycle
from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.api.serializer import serialize_alias, serialize_deleted_alias
from aliasbox.api.views.alias import get_ids_from_body
from aliasbox.errors import ValidationFailed
from aliasbox.extensions import get_db


@api_bp.route("/deleted_aliases", methods=["GET"])
@require_api_auth
def get_deleted_aliases():
    """
    Output:
        deleted_aliases: most recently deleted first
    """
    result = AliasLifecycle(get_db()).list_deleted_aliases(g.user)
    if not result.success:
        return error_response(result)

    return (
        jsonify(deleted_aliases=[serialize_deleted_alias(da) for da in result.data]),
        200,
    )


@api_bp.route("/deleted_aliases/<alias_id>/restore", methods=["POST"])
@require_api_auth
def restore_alias(alias_id):
    """
    Restore a deleted alias, as inactive when the active alias limit is reached
    Output:
        alias, message, partial
    """
    result = AliasLifecycle(get_db()).restore_alias(g.user, alias_id)
    if not result.success:
        return error_response(result)

    return message_response(result, alias=serialize_alias(result.data))


@api_bp.route("/deleted_aliases/<alias_id>", methods=["DELETE"])
@require_api_auth
def permanently_delete_alias(alias_id):
    result = AliasLifecycle(get_db()).permanently_delete_alias(g.user, alias_id)
    return message_response(result, deleted=result.success)


@api_bp.route("/deleted_aliases/restore", methods=["POST"])
@require_api_auth
def restore_aliases():
    """
    Input:
        ids: optional, every deleted alias when missing or empty
    Output:
        nb_restored, message, partial
    """
    data = request.get_json(silent=True)
    try:
        ids = get_ids_from_body(data)
    except ValidationFailed as e:
        return jsonify(error=e.error_for_user()), 400

    result = AliasLifecycle(get_db()).restore_aliases(g.user, ids)
    return message_response(result, nb_restored=result.data)


@api_bp.route("/deleted_aliases/delete", methods=["POST"])
@require_api_auth
def permanently_delete_aliases():
    data = request.get_json(silent=True)
    try:
        ids = get_ids_from_body(data)
    except ValidationFailed as e:
        return jsonify(error=e.error_for_user()), 400

    result = AliasLifecycle(get_db()).permanently_delete_aliases(g.user, ids)
    return message_response(result, nb_deleted=result.data)
