from typing import Optional

from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.db import Database
from aliasbox.errors import ValidationFailed
from aliasbox.log import LOG
from aliasbox.models import (
    ALIAS_LENGTHS,
    ALIAS_SEPARATORS,
    AliasCaseEnum,
    ThemeEnum,
    User,
    UserSettings,
)
from aliasbox.utils import ensure_str, get_email_local_part

_MIN_DEFAULT_ALIAS_COUNT = 1
_MAX_DEFAULT_ALIAS_COUNT = 5


class UserSettingsService:
    def __init__(self, db: Database):
        self._db = db

    def _settings_of(self, user: User) -> UserSettings:
        settings = user.settings
        if settings is None:
            # users created before settings existed
            LOG.w("Create missing settings for %s", user)
            settings = UserSettings.create(
                self._db.session,
                user_id=user.id,
                display_name=get_email_local_part(user.email),
                flush=True,
            )
        return settings

    @as_action_result()
    def get_profile(self, user: User) -> dict:
        settings = self._settings_of(user)
        return {
            "email": user.email,
            "display_name": settings.display_name,
            "first_name": settings.first_name,
            "last_name": settings.last_name,
            "theme": settings.theme,
        }

    @as_action_result()
    def get_settings(self, user: User) -> UserSettings:
        return self._settings_of(user)

    @as_action_result()
    def update_profile(
        self,
        user: User,
        display_name: Optional[str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> ActionResult:
        for value in (display_name, first_name, last_name):
            ensure_str(value, "Profile fields must be strings.")
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationFailed("Display name cannot be empty.")

        settings = self._settings_of(user)
        settings.display_name = display_name
        settings.first_name = first_name
        settings.last_name = last_name
        self._db.session.commit()
        LOG.d("%s updated profile", user)

        return ActionResult(data=settings, message="Profile updated successfully!")

    @as_action_result()
    def update_theme(self, user: User, theme: str) -> ActionResult:
        if not ThemeEnum.has_value(theme):
            raise ValidationFailed("Invalid theme value.")

        settings = self._settings_of(user)
        settings.theme = theme
        self._db.session.commit()

        return ActionResult(data=settings, message="Theme updated successfully!")

    @as_action_result()
    def update_app_preferences(
        self, user: User, default_alias_count: int, default_alias_length: int
    ) -> ActionResult:
        try:
            default_alias_count = int(default_alias_count)
            default_alias_length = int(default_alias_length)
        except (TypeError, ValueError):
            raise ValidationFailed("Invalid application preferences.")

        if not (
            _MIN_DEFAULT_ALIAS_COUNT <= default_alias_count <= _MAX_DEFAULT_ALIAS_COUNT
        ):
            raise ValidationFailed(
                f"Default alias count must be between {_MIN_DEFAULT_ALIAS_COUNT} "
                f"and {_MAX_DEFAULT_ALIAS_COUNT}."
            )
        if default_alias_length not in ALIAS_LENGTHS:
            raise ValidationFailed(
                "Default alias length must be one of "
                + ", ".join(str(length) for length in ALIAS_LENGTHS)
                + "."
            )

        settings = self._settings_of(user)
        settings.default_alias_count = default_alias_count
        settings.default_alias_length = default_alias_length
        self._db.session.commit()

        return ActionResult(
            data=settings, message="Application preferences updated successfully!"
        )

    @as_action_result(
        storage_error="A database error occurred while updating notification preferences."
    )
    def update_notification_preferences(
        self,
        user: User,
        notify_on_alias_creation: bool,
        notify_on_security_event: bool,
        send_weekly_summary: bool,
    ) -> ActionResult:
        settings = self._settings_of(user)
        settings.notify_on_alias_creation = bool(notify_on_alias_creation)
        settings.notify_on_security_event = bool(notify_on_security_event)
        settings.send_weekly_summary = bool(send_weekly_summary)
        self._db.session.commit()

        return ActionResult(
            data=settings, message="Notification preferences updated successfully!"
        )

    @as_action_result()
    def update_alias_generation_rules(
        self, user: User, alias_separator: str, alias_case: str
    ) -> ActionResult:
        if alias_separator not in ALIAS_SEPARATORS:
            raise ValidationFailed("Invalid alias separator.")
        if not AliasCaseEnum.has_value(alias_case):
            raise ValidationFailed("Invalid alias case.")

        settings = self._settings_of(user)
        settings.alias_separator = alias_separator
        settings.alias_case = alias_case
        self._db.session.commit()

        return ActionResult(data=settings, message="Alias generation rules updated!")
