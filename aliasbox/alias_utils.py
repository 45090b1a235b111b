from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy import or_

from aliasbox import config
from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.alias_audit_log_utils import AliasAuditLogAction, emit_alias_audit_log
from aliasbox.db import Database
from aliasbox.errors import Conflict, NotFoundOrForbidden, ValidationFailed
from aliasbox.log import LOG
from aliasbox.models import Alias, AliasFilter, User
from aliasbox.quota import QuotaEngine
from aliasbox.utils import ensure_str, is_valid_email, sanitize_email

UNCATEGORIZED_APPLICATION = "Uncategorized"


def parse_alias_filter(alias_filter: Union[None, str, AliasFilter]) -> Optional[AliasFilter]:
    if alias_filter is None or isinstance(alias_filter, AliasFilter):
        return alias_filter
    if not AliasFilter.has_value(alias_filter):
        raise ValidationFailed(f"Invalid alias filter {alias_filter}")
    return AliasFilter(alias_filter)


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AliasManager:
    """Create, list, search and toggle the live aliases of a user"""

    def __init__(self, db: Database, quota: Optional[QuotaEngine] = None):
        self._db = db
        self._quota = quota or QuotaEngine(db)

    def get_alias(self, user: User, alias_id: str) -> Alias:
        alias = (
            self._db.session.query(Alias)
            .filter(Alias.id == alias_id, Alias.user_id == user.id)
            .first()
        )
        if alias is None:
            raise NotFoundOrForbidden("Alias not found or no permission.")
        return alias

    def _live_alias_query(self, user: User, alias_filter: Optional[AliasFilter]):
        query = self._db.session.query(Alias).filter(Alias.user_id == user.id)
        if alias_filter == AliasFilter.active:
            query = query.filter(Alias.is_active.is_(True))
        elif alias_filter == AliasFilter.inactive:
            query = query.filter(Alias.is_active.is_(False))
        return query

    @as_action_result(conflict_error="This alias has already been saved.")
    def create_alias(
        self, user: User, address: str, description: str, active: bool = True
    ) -> ActionResult:
        ensure_str(address, "Please enter a valid email address.")
        ensure_str(description, "Description must be a string.")

        # the address is kept as typed: generated aliases can be mixed case
        address = sanitize_email(address, not_lower=True)
        if not is_valid_email(address):
            raise ValidationFailed(f"{address} is not a valid email address")

        description = (description or "").strip()
        if not description:
            raise ValidationFailed("Description cannot be empty.")

        session = self._db.session
        if active:
            self._quota.check_can_activate_alias(user)

        existing = (
            session.query(Alias)
            .filter(Alias.user_id == user.id, Alias.email == address)
            .first()
        )
        if existing:
            raise Conflict("This alias has already been saved.")

        alias = Alias.create(
            session,
            user_id=user.id,
            email=address,
            description=description,
            is_active=active,
            flush=True,
        )
        emit_alias_audit_log(
            session,
            alias,
            AliasAuditLogAction.CreateAlias,
            f"Alias created with active={active}",
        )
        session.commit()
        LOG.i("%s created %s", user, alias)

        return ActionResult(data=alias, message="Alias has been saved.")

    @as_action_result()
    def list_aliases(
        self, user: User, alias_filter: Union[None, str, AliasFilter] = None
    ) -> List[Alias]:
        alias_filter = parse_alias_filter(alias_filter)
        return (
            self._live_alias_query(user, alias_filter)
            .order_by(Alias.created_at.desc())
            .all()
        )

    @as_action_result(storage_error="A database error occurred during search.")
    def search_aliases(
        self, user: User, query: Optional[str], max_results: int = config.SEARCH_MAX_RESULTS
    ) -> List[Alias]:
        """Case insensitive match on address or description. No query means no result, not all"""
        if not query or not query.strip():
            return []

        pattern = f"%{_escape_like(query.strip())}%"
        return (
            self._db.session.query(Alias)
            .filter(
                Alias.user_id == user.id,
                or_(
                    Alias.email.ilike(pattern, escape="\\"),
                    Alias.description.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(Alias.created_at.desc())
            .limit(max_results)
            .all()
        )

    @as_action_result(storage_error="Failed to update alias status.")
    def set_alias_active(self, user: User, alias_id: str, active: bool) -> ActionResult:
        session = self._db.session
        alias = self.get_alias(user, alias_id)

        if alias.is_active == active:
            return ActionResult(data=alias)

        if active:
            self._quota.check_can_activate_alias(user)

        alias.is_active = active
        emit_alias_audit_log(
            session,
            alias,
            AliasAuditLogAction.ChangeAliasStatus,
            f"Set active={active}",
        )
        session.commit()
        LOG.i("%s set %s active=%s", user, alias, active)

        return ActionResult(data=alias)

    @as_action_result(storage_error="Failed to activate aliases due to a database error.")
    def activate_aliases(
        self, user: User, ids: Optional[Sequence[str]] = None
    ) -> ActionResult:
        """
        Activate the inactive aliases in ids, or all of them when ids is empty, as long as
        the active alias quota allows. The ones that don't fit stay inactive.
        """
        session = self._db.session
        query = self._live_alias_query(user, AliasFilter.inactive)
        if ids:
            query = query.filter(Alias.id.in_(ids))
        candidates = query.order_by(Alias.created_at.desc()).all()

        if not candidates:
            return ActionResult(data=0, message="No inactive aliases to activate.")

        slots = self._quota.remaining_active_slots(user)
        if slots <= 0:
            return ActionResult(
                data=0,
                message="No available slots to activate aliases. Please deactivate some first.",
                partial=True,
            )

        to_activate = candidates[:slots]
        for alias in to_activate:
            alias.is_active = True
            emit_alias_audit_log(
                session,
                alias,
                AliasAuditLogAction.ChangeAliasStatus,
                "Set active=True in bulk",
            )
        session.commit()

        nb_left = len(candidates) - len(to_activate)
        message = f"Successfully activated {len(to_activate)} alias(es)."
        if nb_left:
            message += (
                f" {nb_left} alias(es) remain inactive because you have reached "
                f"the limit of {config.MAX_ACTIVE_ALIASES} active aliases."
            )
        LOG.i("%s activated %s aliases, %s left inactive", user, len(to_activate), nb_left)

        return ActionResult(data=len(to_activate), message=message, partial=nb_left > 0)

    @as_action_result(storage_error="Failed to deactivate aliases due to a database error.")
    def deactivate_aliases(
        self, user: User, ids: Optional[Sequence[str]] = None
    ) -> ActionResult:
        session = self._db.session
        query = self._live_alias_query(user, AliasFilter.active)
        if ids:
            query = query.filter(Alias.id.in_(ids))

        aliases = query.all()
        for alias in aliases:
            alias.is_active = False
            emit_alias_audit_log(
                session,
                alias,
                AliasAuditLogAction.ChangeAliasStatus,
                "Set active=False in bulk",
            )
        session.commit()
        LOG.i("%s deactivated %s aliases", user, len(aliases))

        return ActionResult(
            data=len(aliases),
            message=f"Successfully deactivated {len(aliases)} alias(es).",
        )

    @as_action_result()
    def list_applications(self, user: User) -> Dict[str, List[Alias]]:
        """Live aliases grouped by their description, sorted by application name"""
        groups: Dict[str, List[Alias]] = {}
        aliases = (
            self._db.session.query(Alias)
            .filter(Alias.user_id == user.id)
            .order_by(Alias.created_at.desc())
            .all()
        )
        for alias in aliases:
            name = alias.description.strip() if alias.description else ""
            groups.setdefault(name or UNCATEGORIZED_APPLICATION, []).append(alias)

        return {name: groups[name] for name in sorted(groups)}

    @as_action_result()
    def alias_counts(self, user: User) -> dict:
        return self._quota.alias_counts(user)
