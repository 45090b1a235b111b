from typing import List, Optional

from flask import g, jsonify, request

from aliasbox.alias_delete import AliasLifecycle
from aliasbox.alias_generator import AliasGenerator
from aliasbox.alias_utils import AliasManager
from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.api.serializer import serialize_alias
from aliasbox.errors import ValidationFailed
from aliasbox.extensions import get_db


def get_ids_from_body(data: Optional[dict]) -> Optional[List[str]]:
    """ids of a bulk operation. Missing or empty means every alias in the implied state"""
    ids = (data or {}).get("ids")
    if ids is None:
        return None
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ValidationFailed("ids must be a list of alias ids")
    return ids


@api_bp.route("/aliases", methods=["GET"])
@require_api_auth
def get_aliases():
    """
    Get the live aliases, newest first
    Input:
        filter: in query, active|inactive, optional
    Output:
        - aliases: list of alias
    """
    result = AliasManager(get_db()).list_aliases(g.user, request.args.get("filter"))
    if not result.success:
        return error_response(result)

    return jsonify(aliases=[serialize_alias(alias) for alias in result.data]), 200


@api_bp.route("/aliases", methods=["POST"])
@require_api_auth
def create_alias():
    """
    Save an alias
    Input:
        email: the alias address
        description
        enabled: optional, default true
    Output:
        201 with the new alias
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    result = AliasManager(get_db()).create_alias(
        g.user,
        data.get("email"),
        data.get("description"),
        active=bool(data.get("enabled", True)),
    )
    if not result.success:
        return error_response(result)

    return jsonify(message=result.message, **serialize_alias(result.data)), 201


@api_bp.route("/aliases/search", methods=["GET"])
@require_api_auth
def search_aliases():
    result = AliasManager(get_db()).search_aliases(g.user, request.args.get("q"))
    if not result.success:
        return error_response(result)

    return jsonify(aliases=[serialize_alias(alias) for alias in result.data]), 200


@api_bp.route("/aliases/counts", methods=["GET"])
@require_api_auth
def get_alias_counts():
    """
    Output:
        total, active, inactive, deleted, limit
    """
    result = AliasManager(get_db()).alias_counts(g.user)
    if not result.success:
        return error_response(result)

    return jsonify(result.data), 200


@api_bp.route("/aliases/applications", methods=["GET"])
@require_api_auth
def get_applications():
    """Aliases grouped by description"""
    result = AliasManager(get_db()).list_applications(g.user)
    if not result.success:
        return error_response(result)

    return (
        jsonify(
            applications=[
                {
                    "name": name,
                    "aliases": [serialize_alias(alias) for alias in aliases],
                }
                for name, aliases in result.data.items()
            ]
        ),
        200,
    )


@api_bp.route("/aliases/generate", methods=["POST"])
@require_api_auth
def generate_aliases():
    """
    Generate candidate addresses, nothing is saved
    Input:
        username: id or address of a sending identity, the primary email when missing
        description
        count: optional, default from settings
        length: optional, 12 or 16, default from settings
    Output:
        aliases: list of addresses
    """
    data = request.get_json(silent=True) or {}
    result = AliasGenerator(get_db()).generate_aliases(
        g.user,
        data.get("username"),
        data.get("description"),
        count=data.get("count"),
        length=data.get("length"),
    )
    if not result.success:
        return error_response(result)

    return jsonify(aliases=result.data), 200


@api_bp.route("/aliases/<alias_id>", methods=["PATCH"])
@require_api_auth
def update_alias(alias_id):
    """
    Activate or deactivate an alias
    Input:
        enabled: bool
    Output:
        200 with the alias
    """
    data = request.get_json(silent=True) or {}
    enabled = data.get("enabled")
    if not isinstance(enabled, bool):
        return jsonify(error="enabled must be a boolean"), 400

    result = AliasManager(get_db()).set_alias_active(g.user, alias_id, enabled)
    if not result.success:
        return error_response(result)

    return jsonify(serialize_alias(result.data)), 200


@api_bp.route("/aliases/<alias_id>", methods=["DELETE"])
@require_api_auth
def delete_alias(alias_id):
    """Move the alias to the deleted aliases"""
    result = AliasLifecycle(get_db()).delete_alias(g.user, alias_id)
    return message_response(result, deleted=result.success)


@api_bp.route("/aliases/activate", methods=["POST"])
@require_api_auth
def activate_aliases():
    """
    Input:
        ids: optional, all inactive aliases when missing or empty
    Output:
        nb_activated, message, partial
    """
    data = request.get_json(silent=True)
    try:
        ids = get_ids_from_body(data)
    except ValidationFailed as e:
        return jsonify(error=e.error_for_user()), 400

    result = AliasManager(get_db()).activate_aliases(g.user, ids)
    return message_response(result, nb_activated=result.data)


@api_bp.route("/aliases/deactivate", methods=["POST"])
@require_api_auth
def deactivate_aliases():
    data = request.get_json(silent=True)
    try:
        ids = get_ids_from_body(data)
    except ValidationFailed as e:
        return jsonify(error=e.error_for_user()), 400

    result = AliasManager(get_db()).deactivate_aliases(g.user, ids)
    return message_response(result, nb_deactivated=result.data)


@api_bp.route("/aliases/delete", methods=["POST"])
@require_api_auth
def delete_aliases():
    """
    Input:
        state: optional, active|inactive
        ids: optional, every alias in state when missing or empty
    Output:
        nb_deleted, message
    """
    data = request.get_json(silent=True)
    try:
        ids = get_ids_from_body(data)
    except ValidationFailed as e:
        return jsonify(error=e.error_for_user()), 400

    result = AliasLifecycle(get_db()).delete_aliases(
        g.user, (data or {}).get("state"), ids
    )
    return message_response(result, nb_deleted=result.data)
