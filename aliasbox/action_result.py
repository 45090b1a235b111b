from dataclasses import dataclass
from functools import wraps
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from aliasbox.errors import (
    AliasBoxException,
    Conflict,
    ErrorKind,
    StorageFailure,
)
from aliasbox.log import LOG


@dataclass
class ActionResult:
    data: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    # set when a quota limited bulk operation only handled part of the rows
    partial: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, e: AliasBoxException) -> "ActionResult":
        return cls(error=e.error_for_user(), error_kind=e.kind)


def as_action_result(
    storage_error: str = "A database error occurred.",
    conflict_error: Optional[str] = None,
):
    """
    Turn a service method into one that always returns an ActionResult.
    The service must expose its Database as `self._db`. Whatever happens, a failed
    call leaves the session rolled back so a multi step transition is all or nothing.
    conflict_error: message to use when the database uniqueness constraint fires
    """

    def decorator(f):
        @wraps(f)
        def wrapper(self, *args, **kwargs):
            session = self._db.session
            try:
                ret = f(self, *args, **kwargs)
            except AliasBoxException as e:
                session.rollback()
                LOG.i("%s rejected: %s", f.__name__, e)
                return ActionResult.failure(e)
            except IntegrityError:
                session.rollback()
                if conflict_error:
                    LOG.w("%s hit a uniqueness constraint", f.__name__)
                    return ActionResult.failure(Conflict(conflict_error))
                LOG.e("Integrity error in %s", f.__name__)
                return ActionResult.failure(StorageFailure(storage_error))
            except SQLAlchemyError:
                session.rollback()
                LOG.e("Database error in %s", f.__name__)
                return ActionResult.failure(StorageFailure(storage_error))

            if isinstance(ret, ActionResult):
                return ret
            return ActionResult(data=ret)

        return wrapper

    return decorator
