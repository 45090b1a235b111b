from dataclasses import dataclass
from typing import List, Optional

import arrow

from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.db import Database
from aliasbox.errors import Conflict, NotFoundOrForbidden, ValidationFailed
from aliasbox.log import LOG
from aliasbox.models import CustomUsername, User
from aliasbox.quota import QuotaEngine
from aliasbox.utils import ensure_str, is_valid_email, sanitize_email

PRIMARY_IDENTITY_ID = "primary"


@dataclass
class SendingIdentity:
    """An address the user can generate aliases from: the primary email or a custom username"""

    id: str
    username: str
    is_default: bool
    description: Optional[str]
    is_active: bool
    created_at: arrow.Arrow


class CustomUsernameRegistry:
    def __init__(self, db: Database, quota: Optional[QuotaEngine] = None):
        self._db = db
        self._quota = quota or QuotaEngine(db)

    def _get_username(self, user: User, username_id: str, action: str) -> CustomUsername:
        custom_username = (
            self._db.session.query(CustomUsername)
            .filter(CustomUsername.id == username_id, CustomUsername.user_id == user.id)
            .first()
        )
        if custom_username is None:
            raise NotFoundOrForbidden(f"Failed to {action}. Not found or no permission.")
        return custom_username

    @as_action_result()
    def list_usernames(self, user: User) -> List[CustomUsername]:
        return (
            self._db.session.query(CustomUsername)
            .filter(CustomUsername.user_id == user.id)
            .order_by(CustomUsername.created_at.desc())
            .all()
        )

    @as_action_result()
    def list_sending_identities(self, user: User) -> List[SendingIdentity]:
        """The primary email first, then the custom usernames newest first"""
        identities = [
            SendingIdentity(
                id=PRIMARY_IDENTITY_ID,
                username=user.email,
                is_default=True,
                description="Primary Account Email",
                is_active=True,
                created_at=user.created_at,
            )
        ]
        custom_usernames = (
            self._db.session.query(CustomUsername)
            .filter(CustomUsername.user_id == user.id)
            .order_by(CustomUsername.created_at.desc())
            .all()
        )
        for custom_username in custom_usernames:
            identities.append(
                SendingIdentity(
                    id=custom_username.id,
                    username=custom_username.username,
                    is_default=False,
                    description=custom_username.description,
                    is_active=custom_username.is_active,
                    created_at=custom_username.created_at,
                )
            )

        return identities

    @as_action_result(conflict_error="This username has already been added.")
    def create_username(
        self, user: User, username: str, description: Optional[str] = None
    ) -> ActionResult:
        ensure_str(username, "Please enter a valid email address.")
        ensure_str(description, "Description must be a string.")
        session = self._db.session
        self._quota.check_can_create_custom_username(user)

        username = sanitize_email(username, not_lower=True)
        if not is_valid_email(username):
            raise ValidationFailed("Please enter a valid email address.")

        # the primary email is an identity, compared case insensitively
        if username.lower() == user.email.lower():
            raise ValidationFailed(
                "This is your primary email and cannot be added as a custom username."
            )
        if user.settings and username == user.settings.display_name:
            raise ValidationFailed(
                "This is your display name and cannot be added as a custom username."
            )

        existing = (
            session.query(CustomUsername)
            .filter(
                CustomUsername.user_id == user.id, CustomUsername.username == username
            )
            .first()
        )
        if existing:
            raise Conflict("This username has already been added.")

        custom_username = CustomUsername.create(
            session,
            user_id=user.id,
            username=username,
            description=description,
            flush=True,
        )
        session.commit()
        LOG.i("%s added %s", user, custom_username)

        return ActionResult(data=custom_username, message="Username has been added.")

    @as_action_result()
    def update_username(
        self, user: User, username_id: str, description: Optional[str]
    ) -> ActionResult:
        ensure_str(description, "Description must be a string.")
        session = self._db.session
        custom_username = self._get_username(user, username_id, "update username")
        custom_username.description = description
        session.commit()

        return ActionResult(data=custom_username, message="Username has been updated.")

    @as_action_result(storage_error="Failed to update username status.")
    def set_username_active(
        self, user: User, username_id: str, active: bool
    ) -> ActionResult:
        session = self._db.session
        custom_username = self._get_username(user, username_id, "update username status")
        custom_username.is_active = active
        session.commit()
        LOG.i("%s set %s active=%s", user, custom_username, active)

        return ActionResult(data=custom_username)

    @as_action_result(storage_error="Failed to delete username.")
    def delete_username(self, user: User, username_id: str) -> ActionResult:
        session = self._db.session
        custom_username = self._get_username(user, username_id, "delete username")
        LOG.w("%s deletes %s", user, custom_username)
        session.delete(custom_username)
        session.commit()

        return ActionResult(message="Username has been deleted.")
