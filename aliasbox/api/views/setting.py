from flask import g, jsonify, request

from aliasbox.api.base import api_bp, error_response, require_api_auth
from aliasbox.extensions import get_db
from aliasbox.models import UserSettings
from aliasbox.user_settings import UserSettingsService

_NOTIFICATION_FIELDS = (
    "notify_on_alias_creation",
    "notify_on_security_event",
    "send_weekly_summary",
)


def setting_to_dict(settings: UserSettings):
    return {
        "default_alias_count": settings.default_alias_count,
        "default_alias_length": settings.default_alias_length,
        "alias_separator": settings.alias_separator,
        "alias_case": settings.alias_case,
        "theme": settings.theme,
        "notify_on_alias_creation": settings.notify_on_alias_creation,
        "notify_on_security_event": settings.notify_on_security_event,
        "send_weekly_summary": settings.send_weekly_summary,
    }


@api_bp.route("/setting")
@require_api_auth
def get_setting():
    """
    Return user setting
    """
    result = UserSettingsService(get_db()).get_settings(g.user)
    if not result.success:
        return error_response(result)

    return jsonify(setting_to_dict(result.data))


@api_bp.route("/setting", methods=["PATCH"])
@require_api_auth
def update_setting():
    """
    Update user setting, every field is optional
    Input:
    - theme: light|dark|system
    - default_alias_count: 1 to 5
    - default_alias_length: 12|16
    - alias_separator: -|_|.
    - alias_case: mixed|lowercase|uppercase
    - notify_on_alias_creation, notify_on_security_event, send_weekly_summary: bool
    """
    user = g.user
    data = request.get_json(silent=True) or {}
    service = UserSettingsService(get_db())
    settings = service.get_settings(user).data

    if "theme" in data:
        result = service.update_theme(user, data["theme"])
        if not result.success:
            return error_response(result)

    if "default_alias_count" in data or "default_alias_length" in data:
        result = service.update_app_preferences(
            user,
            data.get("default_alias_count", settings.default_alias_count),
            data.get("default_alias_length", settings.default_alias_length),
        )
        if not result.success:
            return error_response(result)

    if "alias_separator" in data or "alias_case" in data:
        result = service.update_alias_generation_rules(
            user,
            data.get("alias_separator", settings.alias_separator),
            data.get("alias_case", settings.alias_case),
        )
        if not result.success:
            return error_response(result)

    if any(field in data for field in _NOTIFICATION_FIELDS):
        for field in _NOTIFICATION_FIELDS:
            if field in data and not isinstance(data[field], bool):
                return jsonify(error=f"{field} must be a boolean"), 400
        result = service.update_notification_preferences(
            user,
            *(data.get(field, getattr(settings, field)) for field in _NOTIFICATION_FIELDS),
        )
        if not result.success:
            return error_response(result)

    return jsonify(setting_to_dict(service.get_settings(user).data))
