from enum import Enum


class ErrorKind(Enum):
    NotAuthenticated = "not_authenticated"
    ValidationFailed = "validation_failed"
    QuotaExceeded = "quota_exceeded"
    NotFoundOrForbidden = "not_found_or_forbidden"
    Conflict = "conflict"
    StorageFailure = "storage_failure"


class AliasBoxException(Exception):
    kind: ErrorKind = ErrorKind.StorageFailure

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        super_str = super().__str__()
        return f"{type(self).__name__} {super_str}"

    def error_for_user(self) -> str:
        """By default send the exception message to the user. Should be overloaded by the child exceptions"""
        return self.message or str(self)


class NotAuthenticated(AliasBoxException):
    """raised when no session identity can be resolved"""

    kind = ErrorKind.NotAuthenticated

    def __init__(self, message: str = "You must be logged in."):
        super().__init__(message)


class ValidationFailed(AliasBoxException):
    """raised on malformed input, carries the first violation only"""

    kind = ErrorKind.ValidationFailed


class QuotaExceeded(AliasBoxException):
    kind = ErrorKind.QuotaExceeded

    def __init__(self, limit: int, message: str):
        super().__init__(message)
        self.limit = limit


class CannotActivateAliasQuotaExceeded(QuotaExceeded):
    """raised when user cannot have one more active alias"""

    def __init__(self, limit: int):
        super().__init__(
            limit,
            f"You have reached the limit of {limit} active aliases. "
            "Please deactivate or delete an alias to add a new one.",
        )


class CannotCreateDomainQuotaExceeded(QuotaExceeded):
    def __init__(self, limit: int):
        super().__init__(
            limit, f"You have reached the maximum limit of {limit} custom domains."
        )


class CannotCreateUsernameQuotaExceeded(QuotaExceeded):
    def __init__(self, limit: int):
        super().__init__(
            limit, f"You have reached the maximum limit of {limit} custom usernames."
        )


class NotFoundOrForbidden(AliasBoxException):
    """raised when the row does not exist or belongs to someone else, both look the same to the caller"""

    kind = ErrorKind.NotFoundOrForbidden


class Conflict(AliasBoxException):
    """raised on uniqueness violation, before the insert or from the constraint"""

    kind = ErrorKind.Conflict


class StorageFailure(AliasBoxException):
    kind = ErrorKind.StorageFailure

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message)
