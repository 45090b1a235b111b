"""
Alias address generator.

A generated alias looks like `j.o.hn+Shopping-x8Kq2mZ0aB7c@example.com`: the local part of a
sending identity with dots inserted at random, the `+` subaddress made of the description in
CamelCase, the separator and a random string. Nothing is saved until the user picks one.
"""
import re
import secrets
import string
from typing import List, Optional

from aliasbox import config
from aliasbox.action_result import as_action_result
from aliasbox.custom_username_utils import CustomUsernameRegistry
from aliasbox.db import Database
from aliasbox.errors import NotFoundOrForbidden, ValidationFailed
from aliasbox.models import ALIAS_LENGTHS, ALIAS_SEPARATORS, AliasCaseEnum, User
from aliasbox.quota import QuotaEngine
from aliasbox.utils import ensure_str, random_string

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9\s]")
_DEFAULT_DESCRIPTION = "Alias"


def _letters_for(case: str) -> str:
    if case == AliasCaseEnum.lowercase.value:
        return string.ascii_lowercase + string.digits
    if case == AliasCaseEnum.uppercase.value:
        return string.ascii_uppercase + string.digits
    return string.ascii_lowercase + string.ascii_uppercase + string.digits


def camel_case_description(description: Optional[str]) -> str:
    words = _NON_ALPHANUMERIC.sub("", description or "").split()
    camel = "".join(word[0].upper() + word[1:].lower() for word in words)
    return camel or _DEFAULT_DESCRIPTION


def add_dots(local_part: str) -> str:
    """Insert dots at random in local_part, at least one when it has room for one"""
    if len(local_part) <= 1:
        return local_part

    # a dot never goes next to another dot
    positions = [
        i
        for i in range(1, len(local_part))
        if local_part[i - 1] != "." and local_part[i] != "."
    ]
    chosen = [i for i in positions if secrets.randbelow(2)]
    if not chosen and positions:
        chosen = [secrets.choice(positions)]

    dotted = local_part
    for i in reversed(chosen):
        dotted = dotted[:i] + "." + dotted[i:]
    return dotted


def generate_alias(
    primary_email: str,
    description: Optional[str],
    length: int = 12,
    separator: str = "-",
    case: str = AliasCaseEnum.mixed.value,
) -> str:
    local_part, at, domain = primary_email.rpartition("@")
    if not at or not local_part or not domain:
        raise ValidationFailed(f"{primary_email} is not a valid email address")

    random_part = random_string(length, letters=_letters_for(case))
    return (
        f"{add_dots(local_part)}+{camel_case_description(description)}"
        f"{separator}{random_part}@{domain}"
    )


class AliasGenerator:
    def __init__(self, db: Database, quota: Optional[QuotaEngine] = None):
        self._db = db
        self._quota = quota or QuotaEngine(db)
        self._usernames = CustomUsernameRegistry(db, self._quota)

    def _sending_address(self, user: User, sending_identity: Optional[str]) -> str:
        if not sending_identity:
            return user.email

        for identity in self._usernames.list_sending_identities(user).data or []:
            if identity.is_active and sending_identity in (identity.id, identity.username):
                return identity.username

        raise NotFoundOrForbidden("Username not found or no permission.")

    @as_action_result()
    def generate_aliases(
        self,
        user: User,
        sending_identity: Optional[str],
        description: Optional[str],
        count: Optional[int] = None,
        length: Optional[int] = None,
    ) -> List[str]:
        """
        Return up to `count` fresh addresses for sending_identity, the primary email when empty.
        No more than the remaining active slots, and never more than MAX_GENERATED_ALIASES.
        """
        ensure_str(sending_identity, "Invalid username.")
        ensure_str(description, "Description must be a string.")
        settings = user.settings
        if count is None:
            count = settings.default_alias_count if settings else 1
        if length is None:
            length = settings.default_alias_length if settings else ALIAS_LENGTHS[0]

        try:
            count, length = int(count), int(length)
        except (TypeError, ValueError):
            raise ValidationFailed("Invalid alias count or length.")
        if count < 1:
            raise ValidationFailed("Alias count must be at least 1.")
        if length not in ALIAS_LENGTHS:
            raise ValidationFailed(
                "Alias length must be one of "
                + ", ".join(str(alias_length) for alias_length in ALIAS_LENGTHS)
                + "."
            )

        address = self._sending_address(user, sending_identity)
        separator = settings.alias_separator if settings else ALIAS_SEPARATORS[0]
        case = settings.alias_case if settings else AliasCaseEnum.mixed.value

        count = min(
            count, config.MAX_GENERATED_ALIASES, self._quota.remaining_active_slots(user)
        )
        return [
            generate_alias(address, description, length, separator, case)
            for _ in range(count)
        ]
