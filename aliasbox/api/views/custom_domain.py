from flask import g, jsonify, request

from aliasbox.api.base import api_bp, error_response, message_response, require_api_auth
from aliasbox.api.serializer import to_timestamp
from aliasbox.custom_domain_utils import CustomDomainRegistry
from aliasbox.extensions import get_db, limiter
from aliasbox.models import CustomDomain


def custom_domain_to_dict(custom_domain: CustomDomain):
    return {
        "id": custom_domain.id,
        "domain_name": custom_domain.domain,
        "description": custom_domain.description,
        "is_active": custom_domain.is_active,
        "creation_date": custom_domain.created_at.format(),
        "creation_timestamp": to_timestamp(custom_domain.created_at),
    }


@api_bp.route("/custom_domains", methods=["GET"])
@require_api_auth
def get_custom_domains():
    result = CustomDomainRegistry(get_db()).list_domains(g.user)
    if not result.success:
        return error_response(result)

    return jsonify(custom_domains=[custom_domain_to_dict(cd) for cd in result.data])


@api_bp.route("/custom_domains", methods=["POST"])
@require_api_auth
@limiter.limit("100/hour")
def create_custom_domain():
    """
    Input:
        domain_name
        description (optional)
    Output:
        201 with the custom domain
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    result = CustomDomainRegistry(get_db()).create_domain(
        g.user, data.get("domain_name"), data.get("description")
    )
    if not result.success:
        return error_response(result)

    return jsonify(custom_domain=custom_domain_to_dict(result.data)), 201


@api_bp.route("/custom_domains/<custom_domain_id>", methods=["PATCH"])
@require_api_auth
@limiter.limit("100/hour")
def update_custom_domain(custom_domain_id):
    """
    Input:
        custom_domain_id: in url
    In body:
        domain_name (optional): along with description
        description (optional)
        is_active (optional): boolean
    Output:
        200 with the custom domain
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify(error="request body cannot be empty"), 400

    user = g.user
    registry = CustomDomainRegistry(get_db())
    result = None

    if "domain_name" in data:
        result = registry.update_domain(
            user, custom_domain_id, data.get("domain_name"), data.get("description")
        )
        if not result.success:
            return error_response(result)

    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            return jsonify(error="is_active must be a boolean"), 400
        result = registry.set_domain_active(user, custom_domain_id, data["is_active"])
        if not result.success:
            return error_response(result)

    if result is None:
        return jsonify(error="Nothing to update"), 400

    return jsonify(custom_domain=custom_domain_to_dict(result.data)), 200


@api_bp.route("/custom_domains/<custom_domain_id>", methods=["DELETE"])
@require_api_auth
def delete_custom_domain(custom_domain_id):
    result = CustomDomainRegistry(get_db()).delete_domain(g.user, custom_domain_id)
    return message_response(result, deleted=result.success)
