"""
Server side sessions.

A session token handed to the client looks like `<lookup_key>.<secret>`. Only the lookup
key and a bcrypt hash of the secret are stored, so the database never holds a usable
bearer credential, yet a token is found with one indexed query and one hash check.

Rows created before lookup keys existed have `lookup_key = NULL` and a hash of the whole
token: a token without a lookup key is checked against every such unexpired row.
"""
import secrets
from typing import List, Optional, Tuple

import arrow
import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from aliasbox import config
from aliasbox.db import Database
from aliasbox.log import LOG
from aliasbox.models import AuthSession, User

_TOKEN_SEPARATOR = "."


def hash_token_secret(secret: str) -> str:
    salt = bcrypt.gensalt(rounds=config.SESSION_TOKEN_BCRYPT_ROUNDS)
    return bcrypt.hashpw(secret.encode(), salt).decode()


def token_secret_matches(secret: str, token_hash: str) -> bool:
    try:
        return bcrypt.checkpw(secret.encode(), token_hash.encode())
    except ValueError:
        # malformed or legacy stored value, never a match
        LOG.w("Cannot compare a token against stored hash %s...", token_hash[:7])
        return False


class SessionStore:
    def __init__(self, db: Database):
        self._db = db

    def issue(
        self,
        user: User,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> str:
        """Create a session for user and return the plaintext token, which is not kept"""
        session = self._db.session
        lookup_key = secrets.token_urlsafe(18)
        secret = secrets.token_urlsafe(32)

        auth_session = AuthSession.create(
            session,
            user_id=user.id,
            lookup_key=lookup_key,
            token_hash=hash_token_secret(secret),
            expires_at=arrow.utcnow().shift(days=config.SESSION_LIFETIME_DAYS),
            user_agent=user_agent[:512] if user_agent else None,
            ip_address=ip_address[:64] if ip_address else None,
        )
        session.commit()
        LOG.i("Issued %s for %s", auth_session, user)

        return f"{lookup_key}{_TOKEN_SEPARATOR}{secret}"

    def resolve(self, token: Optional[str]) -> Optional[User]:
        if not token:
            return None

        try:
            auth_session = self.find(token)
            if auth_session is None:
                return None
            # lazy load, it can hit the database too
            return auth_session.user
        except SQLAlchemyError:
            self._db.session.rollback()
            LOG.e("Cannot resolve session token")
            return None

    def find(self, token: str, user: Optional[User] = None) -> Optional[AuthSession]:
        """Return the unexpired session matching token, optionally restricted to user"""
        lookup_key, sep, secret = token.partition(_TOKEN_SEPARATOR)
        if not sep:
            return self._scan_legacy_sessions(token, user)

        if not lookup_key or not secret:
            return None

        query = self._db.session.query(AuthSession).filter(
            AuthSession.lookup_key == lookup_key,
            AuthSession.expires_at > arrow.utcnow(),
        )
        if user is not None:
            query = query.filter(AuthSession.user_id == user.id)

        auth_session = query.first()
        if auth_session and token_secret_matches(secret, auth_session.token_hash):
            return auth_session

        return None

    def _scan_legacy_sessions(
        self, token: str, user: Optional[User]
    ) -> Optional[AuthSession]:
        query = self._db.session.query(AuthSession).filter(
            AuthSession.lookup_key.is_(None),
            AuthSession.expires_at > arrow.utcnow(),
        )
        if user is not None:
            query = query.filter(AuthSession.user_id == user.id)

        for auth_session in query.all():
            if token_secret_matches(token, auth_session.token_hash):
                return auth_session

        return None

    def invalidate(self, token: Optional[str]) -> bool:
        """Delete the session of token. Return whether a row was deleted, both cases are fine"""
        if not token:
            return False

        session = self._db.session
        auth_session = self.find(token)
        if auth_session is None:
            return False

        session.query(AuthSession).filter(AuthSession.id == auth_session.id).delete(
            synchronize_session=False
        )
        session.commit()
        LOG.i("Invalidated %s", auth_session)
        return True

    def invalidate_all_except(self, user: User, current_token: Optional[str]) -> int:
        """Delete every unexpired session of user except the current one, return how many"""
        session = self._db.session
        current = self.find(current_token, user) if current_token else None

        query = session.query(AuthSession).filter(
            AuthSession.user_id == user.id,
            AuthSession.expires_at > arrow.utcnow(),
        )
        if current is not None:
            query = query.filter(AuthSession.id != current.id)

        nb_deleted = query.delete(synchronize_session=False)
        session.commit()
        LOG.i("Invalidated %s other sessions of %s", nb_deleted, user)
        return nb_deleted

    def list_sessions(
        self, user: User, current_token: Optional[str]
    ) -> Tuple[Optional[AuthSession], List[AuthSession]]:
        current = self.find(current_token, user) if current_token else None

        auth_sessions = (
            self._db.session.query(AuthSession)
            .filter(
                AuthSession.user_id == user.id,
                AuthSession.expires_at > arrow.utcnow(),
            )
            .order_by(AuthSession.created_at.desc())
            .all()
        )
        others = [s for s in auth_sessions if current is None or s.id != current.id]
        return current, others
