"""
Soft delete lifecycle of an alias.

A live alias (table `alias`, active or inactive) moves to `deleted_alias` on delete and back
on restore, keeping its id and created_at. Each move is an insert plus a delete done in the
same transaction, so an alias id is always in exactly one of the two tables.
"""
from typing import List, Optional, Sequence, Union

import arrow

from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.alias_audit_log_utils import AliasAuditLogAction, emit_alias_audit_log
from aliasbox.alias_utils import parse_alias_filter
from aliasbox.db import Database
from aliasbox.errors import Conflict, NotFoundOrForbidden
from aliasbox.log import LOG
from aliasbox.models import Alias, AliasFilter, DeletedAlias, User
from aliasbox.quota import QuotaEngine
from aliasbox.utils import debug_info

_RESTORE_CONFLICT = "This alias already exists in your active list."


class AliasLifecycle:
    def __init__(self, db: Database, quota: Optional[QuotaEngine] = None):
        self._db = db
        self._quota = quota or QuotaEngine(db)

    def _move_to_trash(self, alias: Alias) -> DeletedAlias:
        session = self._db.session
        deleted_alias = DeletedAlias(
            id=alias.id,
            user_id=alias.user_id,
            email=alias.email,
            description=alias.description,
            created_at=alias.created_at,
            deleted_at=arrow.utcnow(),
        )
        session.add(deleted_alias)
        emit_alias_audit_log(
            session, alias, AliasAuditLogAction.DeleteAlias, "Alias moved to trash"
        )
        session.delete(alias)
        session.flush()
        LOG.i("Moved %s to trash", alias)

        return deleted_alias

    def _restore_from_trash(self, deleted_alias: DeletedAlias, active: bool) -> Alias:
        session = self._db.session
        alias = Alias(
            id=deleted_alias.id,
            user_id=deleted_alias.user_id,
            email=deleted_alias.email,
            description=deleted_alias.description,
            created_at=deleted_alias.created_at,
            is_active=active,
        )
        session.delete(deleted_alias)
        session.add(alias)
        emit_alias_audit_log(
            session,
            alias,
            AliasAuditLogAction.RestoreAlias,
            f"Restored alias {alias.id} from trash with active={active}",
        )
        session.flush()
        LOG.i("Restored %s from trash, active=%s", alias, active)

        return alias

    def _get_deleted_alias(self, user: User, alias_id: str) -> Optional[DeletedAlias]:
        return (
            self._db.session.query(DeletedAlias)
            .filter(DeletedAlias.id == alias_id, DeletedAlias.user_id == user.id)
            .first()
        )

    def _live_emails(self, user: User) -> set:
        rows = (
            self._db.session.query(Alias.email).filter(Alias.user_id == user.id).all()
        )
        return {row[0] for row in rows}

    @as_action_result()
    def list_deleted_aliases(self, user: User) -> List[DeletedAlias]:
        return (
            self._db.session.query(DeletedAlias)
            .filter(DeletedAlias.user_id == user.id)
            .order_by(DeletedAlias.deleted_at.desc())
            .all()
        )

    @as_action_result(storage_error="Failed to delete alias due to a database error.")
    def delete_alias(self, user: User, alias_id: str) -> ActionResult:
        session = self._db.session
        alias = (
            session.query(Alias)
            .filter(Alias.id == alias_id, Alias.user_id == user.id)
            .first()
        )
        if alias is None:
            raise NotFoundOrForbidden("Failed to delete alias. Not found or no permission.")

        deleted_alias = self._move_to_trash(alias)
        session.commit()

        return ActionResult(
            data=deleted_alias, message="Alias has been moved to the deleted history."
        )

    @as_action_result(
        storage_error="Failed to restore alias due to a database error.",
        conflict_error=_RESTORE_CONFLICT,
    )
    def restore_alias(self, user: User, alias_id: str) -> ActionResult:
        """
        Put a deleted alias back. It comes back active if the quota allows, inactive otherwise.
        Restoring an address that is live again, because it was created while this one
        was deleted, is a Conflict.
        """
        session = self._db.session
        LOG.i("Try to restore alias %s by %s", alias_id, user)
        deleted_alias = self._get_deleted_alias(user, alias_id)
        if deleted_alias is None:
            raise NotFoundOrForbidden("Failed to restore alias. Not found or no permission.")

        if deleted_alias.email in self._live_emails(user):
            raise Conflict(_RESTORE_CONFLICT)

        should_be_active = self._quota.can_activate_alias(user)
        alias = self._restore_from_trash(deleted_alias, should_be_active)
        session.commit()

        if should_be_active:
            return ActionResult(
                data=alias, message="Alias has been restored and set to active."
            )
        return ActionResult(
            data=alias,
            message="Alias has been restored as inactive because you have reached your active alias limit.",
            partial=True,
        )

    @as_action_result(
        storage_error="Failed to permanently delete alias due to a database error."
    )
    def permanently_delete_alias(self, user: User, alias_id: str) -> ActionResult:
        session = self._db.session
        deleted_alias = self._get_deleted_alias(user, alias_id)
        if deleted_alias is None:
            raise NotFoundOrForbidden(
                "Failed to permanently delete alias. Not found or no permission."
            )

        emit_alias_audit_log(
            session,
            deleted_alias,
            AliasAuditLogAction.PermanentlyDeleteAlias,
            "Alias permanently deleted",
        )
        session.delete(deleted_alias)
        session.commit()
        LOG.i("%s permanently deleted %s", user, deleted_alias)

        return ActionResult(message="Alias has been permanently deleted.")

    @debug_info
    @as_action_result(storage_error="Failed to delete aliases due to a database error.")
    def delete_aliases(
        self,
        user: User,
        state: Union[None, str, AliasFilter] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> ActionResult:
        """
        Move the live aliases in `state` to the trash: the ones in ids, or all of them
        when ids is empty. Everything moves in one transaction.
        """
        session = self._db.session
        state = parse_alias_filter(state)
        label = f"{state.value} " if state else ""

        query = session.query(Alias).filter(Alias.user_id == user.id)
        if state == AliasFilter.active:
            query = query.filter(Alias.is_active.is_(True))
        elif state == AliasFilter.inactive:
            query = query.filter(Alias.is_active.is_(False))
        if ids:
            query = query.filter(Alias.id.in_(ids))

        aliases = query.all()
        if not aliases:
            return ActionResult(data=0, message=f"No matching {label}aliases to delete.")

        for alias in aliases:
            self._move_to_trash(alias)
        session.commit()
        LOG.i("%s moved %s %saliases to trash", user, len(aliases), label)

        return ActionResult(
            data=len(aliases),
            message=f"Selected {label}aliases have been moved to the deleted history.",
        )

    @debug_info
    @as_action_result(
        storage_error="Failed to restore aliases due to a database error.",
        conflict_error=_RESTORE_CONFLICT,
    )
    def restore_aliases(
        self, user: User, ids: Optional[Sequence[str]] = None
    ) -> ActionResult:
        """
        Restore the deleted aliases in ids, or all of them when ids is empty.
        As many as the quota allows come back active, the others inactive.
        An alias whose address is live again stays in the trash.
        """
        session = self._db.session
        query = session.query(DeletedAlias).filter(DeletedAlias.user_id == user.id)
        if ids:
            query = query.filter(DeletedAlias.id.in_(ids))

        deleted_aliases = query.order_by(DeletedAlias.deleted_at.desc()).all()
        if not deleted_aliases:
            return ActionResult(data=0, message="No aliases to restore.")

        slots = self._quota.remaining_active_slots(user)
        live_emails = self._live_emails(user)
        nb_active = nb_inactive = nb_skipped = 0

        for deleted_alias in deleted_aliases:
            if deleted_alias.email in live_emails:
                LOG.w("Cannot restore %s, address is already live", deleted_alias)
                nb_skipped += 1
                continue

            active = slots > 0
            if active:
                slots -= 1
                nb_active += 1
            else:
                nb_inactive += 1
            self._restore_from_trash(deleted_alias, active)
            live_emails.add(deleted_alias.email)

        session.commit()

        nb_restored = nb_active + nb_inactive
        message = f"Restored {nb_restored} alias(es): {nb_active} active"
        if nb_inactive:
            message += f", {nb_inactive} inactive because you have reached your active alias limit"
        message += "."
        if nb_skipped:
            message += f" {nb_skipped} alias(es) already exist in your active list and were not restored."
        LOG.i("%s restored %s aliases, skipped %s", user, nb_restored, nb_skipped)

        return ActionResult(
            data=nb_restored,
            message=message,
            partial=nb_inactive > 0 or nb_skipped > 0,
        )

    @as_action_result(storage_error="Failed to delete aliases due to a database error.")
    def permanently_delete_aliases(
        self, user: User, ids: Optional[Sequence[str]] = None
    ) -> ActionResult:
        session = self._db.session
        query = session.query(DeletedAlias).filter(DeletedAlias.user_id == user.id)
        if ids:
            query = query.filter(DeletedAlias.id.in_(ids))

        deleted_aliases = query.all()
        if not deleted_aliases:
            return ActionResult(data=0, message="No aliases to permanently delete.")

        for deleted_alias in deleted_aliases:
            emit_alias_audit_log(
                session,
                deleted_alias,
                AliasAuditLogAction.PermanentlyDeleteAlias,
                "Alias permanently deleted in bulk",
            )
            session.delete(deleted_alias)
        session.commit()
        LOG.i("%s permanently deleted %s aliases", user, len(deleted_aliases))

        return ActionResult(
            data=len(deleted_aliases),
            message="Selected aliases have been permanently removed.",
        )
