from typing import Optional

from arrow import Arrow

from aliasbox.custom_username_utils import SendingIdentity
from aliasbox.models import (
    Alias,
    AuthSession,
    CustomUsername,
    DeletedAlias,
)


def to_timestamp(value: Optional[Arrow]) -> Optional[int]:
    if value is None:
        return None
    return int(value.timestamp())


def serialize_alias(alias: Alias) -> dict:
    return {
        "id": alias.id,
        "email": alias.email,
        "description": alias.description,
        "enabled": alias.is_active,
        "creation_date": alias.created_at.format(),
        "creation_timestamp": to_timestamp(alias.created_at),
    }


def serialize_deleted_alias(deleted_alias: DeletedAlias) -> dict:
    return {
        "id": deleted_alias.id,
        "email": deleted_alias.email,
        "description": deleted_alias.description,
        "creation_date": deleted_alias.created_at.format(),
        "creation_timestamp": to_timestamp(deleted_alias.created_at),
        "deletion_timestamp": to_timestamp(deleted_alias.deleted_at),
    }


def custom_username_to_dict(custom_username: CustomUsername) -> dict:
    return {
        "id": custom_username.id,
        "username": custom_username.username,
        "description": custom_username.description,
        "is_active": custom_username.is_active,
        "is_default": False,
        "creation_timestamp": to_timestamp(custom_username.created_at),
    }


def sending_identity_to_dict(identity: SendingIdentity) -> dict:
    return {
        "id": identity.id,
        "username": identity.username,
        "description": identity.description,
        "is_active": identity.is_active,
        "is_default": identity.is_default,
        "creation_timestamp": to_timestamp(identity.created_at),
    }


def auth_session_to_dict(auth_session: AuthSession) -> dict:
    # the token hash never leaves the server
    return {
        "id": auth_session.id,
        "user_agent": auth_session.user_agent,
        "ip_address": auth_session.ip_address,
        "creation_timestamp": to_timestamp(auth_session.created_at),
        "expiration_timestamp": to_timestamp(auth_session.expires_at),
    }
