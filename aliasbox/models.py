from __future__ import annotations

import enum
import uuid

import arrow
import sqlalchemy as sa
from flask_login import UserMixin
from sqlalchemy import orm
from sqlalchemy.orm import declarative_base
from sqlalchemy_utils import ArrowType

from aliasbox import config
from aliasbox.pw_models import PasswordOracle
from aliasbox.utils import get_email_local_part, sanitize_email

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class ModelMixin(object):
    # uuid so an id that left a table is never handed out again
    id = sa.Column(sa.String(36), primary_key=True, default=_new_id)
    created_at = sa.Column(ArrowType, default=arrow.utcnow, nullable=False)
    updated_at = sa.Column(ArrowType, default=None, onupdate=arrow.utcnow)

    _repr_hide = ["created_at", "updated_at"]

    @classmethod
    def create(cls, session: orm.Session, **kw):
        # whether to call session.commit
        commit = kw.pop("commit", False)
        flush = kw.pop("flush", False)

        r = cls(**kw)
        session.add(r)

        if commit:
            session.commit()

        if flush:
            session.flush()

        return r

    def __repr__(self):
        values = ", ".join(
            "%s=%r" % (n, getattr(self, n))
            for n in self.__table__.c.keys()
            if n not in self._repr_hide
        )
        return "%s(%s)" % (self.__class__.__name__, values)


class EnumE(enum.Enum):
    @classmethod
    def has_value(cls, value) -> bool:
        return any(item.value == value for item in cls)


class ThemeEnum(EnumE):
    light = "light"
    dark = "dark"
    system = "system"


class AliasCaseEnum(EnumE):
    mixed = "mixed"
    lowercase = "lowercase"
    uppercase = "uppercase"


class AliasFilter(EnumE):
    active = "active"
    inactive = "inactive"


ALIAS_SEPARATORS = ("-", "_", ".")
ALIAS_LENGTHS = (12, 16)


class User(Base, ModelMixin, UserMixin, PasswordOracle):
    __tablename__ = "users"

    email = sa.Column(sa.String(256), unique=True, nullable=False)

    settings = orm.relationship(
        "UserSettings",
        uselist=False,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @classmethod
    def create(cls, session: orm.Session, email, password=None, **kwargs):
        email = sanitize_email(email)
        user: User = super(User, cls).create(session, email=email, **kwargs)

        if password:
            user.set_password(password)

        session.flush()
        UserSettings.create(
            session, user_id=user.id, display_name=get_email_local_part(email), flush=True
        )

        return user

    @property
    def display_name(self) -> str:
        if self.settings and self.settings.display_name:
            return self.settings.display_name
        return get_email_local_part(self.email)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class UserSettings(Base, ModelMixin):
    __tablename__ = "user_settings"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, unique=True
    )

    # profile
    display_name = sa.Column(sa.String(128), nullable=True)
    first_name = sa.Column(sa.String(128), nullable=True)
    last_name = sa.Column(sa.String(128), nullable=True)
    theme = sa.Column(
        sa.String(16), default=ThemeEnum.system.value, nullable=False
    )

    # alias generation preferences
    default_alias_count = sa.Column(sa.Integer, default=1, nullable=False)
    default_alias_length = sa.Column(sa.Integer, default=12, nullable=False)
    alias_separator = sa.Column(sa.String(1), default="-", nullable=False)
    alias_case = sa.Column(
        sa.String(16), default=AliasCaseEnum.mixed.value, nullable=False
    )

    # notifications
    notify_on_alias_creation = sa.Column(sa.Boolean, default=False, nullable=False)
    notify_on_security_event = sa.Column(sa.Boolean, default=True, nullable=False)
    send_weekly_summary = sa.Column(sa.Boolean, default=False, nullable=False)

    user = orm.relationship(User, back_populates="settings")


def _session_expiration():
    return arrow.utcnow().shift(days=config.SESSION_LIFETIME_DAYS)


class AuthSession(Base, ModelMixin):
    """One logged-in browser or device. The bearer token itself is never stored"""

    __tablename__ = "auth_session"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    # public part of the token, NULL for sessions created before lookup keys existed
    lookup_key = sa.Column(sa.String(64), unique=True, nullable=True)
    token_hash = sa.Column(sa.String(128), nullable=False)
    expires_at = sa.Column(
        ArrowType, default=_session_expiration, nullable=False, index=True
    )

    # only used for display
    user_agent = sa.Column(sa.String(512), nullable=True)
    ip_address = sa.Column(sa.String(64), nullable=True)

    user = orm.relationship(User)

    def __repr__(self):
        return f"<AuthSession {self.id} user={self.user_id}>"


class Alias(Base, ModelMixin):
    __tablename__ = "alias"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    email = sa.Column(sa.String(256), nullable=False)

    # free text, also used to group aliases by "application"
    description = sa.Column(sa.Text, nullable=False, default="")

    is_active = sa.Column(sa.Boolean, default=True, nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("user_id", "email", name="uq_alias_user_id_email"),
        sa.Index("ix_alias_user_id_is_active", "user_id", "is_active"),
    )

    def __repr__(self):
        return f"<Alias {self.id} {self.email}>"


class DeletedAlias(Base, ModelMixin):
    """Soft-deleted alias, keeps the id and created_at of the alias it comes from"""

    __tablename__ = "deleted_alias"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    email = sa.Column(sa.String(256), nullable=False)
    description = sa.Column(sa.Text, nullable=False, default="")
    deleted_at = sa.Column(ArrowType, default=arrow.utcnow, nullable=False)

    def __repr__(self):
        return f"<Deleted Alias {self.id} {self.email}>"


class CustomDomain(Base, ModelMixin):
    __tablename__ = "custom_domain"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    domain = sa.Column(sa.String(128), nullable=False)
    description = sa.Column(sa.Text, nullable=True)
    is_active = sa.Column(sa.Boolean, default=True, nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("user_id", "domain", name="uq_custom_domain_user_domain"),
    )

    def __repr__(self):
        return f"<Custom Domain {self.domain}>"


class CustomUsername(Base, ModelMixin):
    """Additional sending identity, the primary email is never stored here"""

    __tablename__ = "custom_username"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    username = sa.Column(sa.String(256), nullable=False)
    description = sa.Column(sa.Text, nullable=True)
    is_active = sa.Column(sa.Boolean, default=True, nullable=False)

    __table_args__ = (
        sa.UniqueConstraint(
            "user_id", "username", name="uq_custom_username_user_username"
        ),
    )

    def __repr__(self):
        return f"<Custom Username {self.username}>"


class AliasAuditLog(Base, ModelMixin):
    """This model holds an audit log for all the actions performed to an alias"""

    __tablename__ = "alias_audit_log"

    user_id = sa.Column(
        sa.ForeignKey(User.id, ondelete="cascade"), nullable=False, index=True
    )
    alias_id = sa.Column(sa.String(36), nullable=False, index=True)
    alias_email = sa.Column(sa.String(256), nullable=False)
    action = sa.Column(sa.String(255), nullable=False)
    message = sa.Column(sa.Text, default=None, nullable=True)
