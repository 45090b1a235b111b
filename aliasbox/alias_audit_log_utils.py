from enum import Enum
from typing import Union

from sqlalchemy import orm

from aliasbox.models import Alias, AliasAuditLog, DeletedAlias


class AliasAuditLogAction(Enum):
    CreateAlias = "create"
    ChangeAliasStatus = "change_status"
    DeleteAlias = "delete"
    RestoreAlias = "restored_alias"
    PermanentlyDeleteAlias = "permanently_delete"


def emit_alias_audit_log(
    session: orm.Session,
    alias: Union[Alias, DeletedAlias],
    action: AliasAuditLogAction,
    message: str,
    commit: bool = False,
):
    AliasAuditLog.create(
        session,
        user_id=alias.user_id,
        alias_id=alias.id,
        alias_email=alias.email,
        action=action.value,
        message=message,
        commit=commit,
    )
