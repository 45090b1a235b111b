from typing import List, Optional, Tuple

from sqlalchemy import func

from aliasbox import config
from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.db import Database
from aliasbox.errors import NotAuthenticated, ValidationFailed
from aliasbox.log import LOG
from aliasbox.models import (
    Alias,
    AliasAuditLog,
    AuthSession,
    CustomDomain,
    CustomUsername,
    DeletedAlias,
    User,
    UserSettings,
)
from aliasbox.session_store import SessionStore
from aliasbox.utils import ensure_str, is_valid_email, sanitize_email

_INVALID_CREDENTIALS = "Invalid email or password."


def _check_password_length(password: Optional[str], message: str):
    if not isinstance(password, str) or len(password) < config.PASSWORD_MIN_LENGTH:
        raise ValidationFailed(message)
    if len(password.encode()) > config.PASSWORD_MAX_LENGTH:
        raise ValidationFailed("Password is too long.")


class AccountService:
    """Signup, login and everything that touches the account as a whole"""

    def __init__(self, db: Database, session_store: Optional[SessionStore] = None):
        self._db = db
        self._session_store = session_store or SessionStore(db)

    def _email_in_use(self, email: str) -> bool:
        session = self._db.session
        if session.query(User).filter(func.lower(User.email) == email).first():
            return True

        # someone else sends from this address
        return (
            session.query(CustomUsername)
            .filter(func.lower(CustomUsername.username) == email)
            .first()
            is not None
        )

    @as_action_result(storage_error="A database error occurred during signup.")
    def signup(self, email: str, password: str) -> ActionResult:
        ensure_str(email, "Please enter a valid email address.")
        email = sanitize_email(email)
        if not is_valid_email(email):
            raise ValidationFailed("Please enter a valid email address.")
        _check_password_length(
            password,
            f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters long.",
        )

        if self._email_in_use(email):
            LOG.i("Signup with an email already in use %s", email)
            raise ValidationFailed("This email address is already in use.")

        session = self._db.session
        user = User.create(session, email=email, password=password)
        session.commit()
        LOG.i("New user %s", user)

        return ActionResult(data=user, message="Signup successful! Please log in.")

    @as_action_result(storage_error="A database error occurred during login.")
    def login(
        self,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ActionResult:
        """On success data is the session token, shown once and never stored"""
        ensure_str(email, _INVALID_CREDENTIALS)
        ensure_str(password, _INVALID_CREDENTIALS)
        email = sanitize_email(email)
        if not email or not password:
            raise NotAuthenticated(_INVALID_CREDENTIALS)

        user = self._db.session.query(User).filter(User.email == email).first()
        if not user or not user.check_password(password):
            LOG.d("Failed login for %s", email)
            raise NotAuthenticated(_INVALID_CREDENTIALS)

        token = self._session_store.issue(user, user_agent, ip_address)
        return ActionResult(data=token, message="Logged in.")

    @as_action_result()
    def logout(self, token: Optional[str]) -> ActionResult:
        self._session_store.invalidate(token)
        return ActionResult(message="You are logged out.")

    @as_action_result()
    def logout_all_others(self, user: User, current_token: Optional[str]) -> ActionResult:
        nb_deleted = self._session_store.invalidate_all_except(user, current_token)
        return ActionResult(
            data=nb_deleted,
            message="Successfully logged out from all other devices.",
        )

    @as_action_result()
    def list_sessions(
        self, user: User, current_token: Optional[str]
    ) -> Tuple[Optional[AuthSession], List[AuthSession]]:
        return self._session_store.list_sessions(user, current_token)

    @as_action_result()
    def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> ActionResult:
        ensure_str(current_password, "Current password is required.")
        if not current_password:
            raise ValidationFailed("Current password is required.")
        _check_password_length(
            new_password,
            f"New password must be at least {config.PASSWORD_MIN_LENGTH} characters long.",
        )
        if new_password != confirm_password:
            raise ValidationFailed("New passwords don't match")

        if not user.check_password(current_password):
            LOG.w("%s entered a wrong current password", user)
            raise ValidationFailed("Incorrect current password.")

        user.set_password(new_password)
        self._db.session.commit()
        LOG.i("%s changed password", user)

        return ActionResult(message="Password updated successfully!")

    @as_action_result(storage_error="A database error occurred during account deletion.")
    def delete_account(self, user: User) -> ActionResult:
        session = self._db.session
        LOG.w("Delete account %s", user)

        for model in (
            Alias,
            DeletedAlias,
            CustomDomain,
            CustomUsername,
            AuthSession,
            AliasAuditLog,
            UserSettings,
        ):
            session.query(model).filter(model.user_id == user.id).delete(
                synchronize_session=False
            )
        session.query(User).filter(User.id == user.id).delete(synchronize_session=False)
        session.commit()

        return ActionResult(message="Account deleted successfully.")
