from aliasbox import config
from aliasbox.db import Database
from aliasbox.errors import (
    CannotActivateAliasQuotaExceeded,
    CannotCreateDomainQuotaExceeded,
    CannotCreateUsernameQuotaExceeded,
)
from aliasbox.log import LOG
from aliasbox.models import Alias, CustomDomain, CustomUsername, DeletedAlias, User


class QuotaEngine:
    """
    Per user resource ceilings. Counts are read from the database every time,
    in the caller's transaction, and never cached.

    The count then insert sequence is not serialized: concurrent requests of the same user
    can go over a limit by the number of requests in flight minus one.
    """

    def __init__(self, db: Database):
        self._db = db

    def count_active_aliases(self, user: User) -> int:
        return (
            self._db.session.query(Alias)
            .filter(Alias.user_id == user.id, Alias.is_active.is_(True))
            .count()
        )

    def count_inactive_aliases(self, user: User) -> int:
        return (
            self._db.session.query(Alias)
            .filter(Alias.user_id == user.id, Alias.is_active.is_(False))
            .count()
        )

    def count_deleted_aliases(self, user: User) -> int:
        return (
            self._db.session.query(DeletedAlias)
            .filter(DeletedAlias.user_id == user.id)
            .count()
        )

    def count_custom_domains(self, user: User) -> int:
        return (
            self._db.session.query(CustomDomain)
            .filter(CustomDomain.user_id == user.id)
            .count()
        )

    def count_custom_usernames(self, user: User) -> int:
        return (
            self._db.session.query(CustomUsername)
            .filter(CustomUsername.user_id == user.id)
            .count()
        )

    def remaining_active_slots(self, user: User) -> int:
        return max(0, config.MAX_ACTIVE_ALIASES - self.count_active_aliases(user))

    def can_activate_alias(self, user: User) -> bool:
        return self.count_active_aliases(user) < config.MAX_ACTIVE_ALIASES

    def check_can_activate_alias(self, user: User):
        if not self.can_activate_alias(user):
            LOG.i("%s has reached the active alias limit", user)
            raise CannotActivateAliasQuotaExceeded(config.MAX_ACTIVE_ALIASES)

    def check_can_create_custom_domain(self, user: User):
        if self.count_custom_domains(user) >= config.MAX_CUSTOM_DOMAINS:
            LOG.i("%s has reached the custom domain limit", user)
            raise CannotCreateDomainQuotaExceeded(config.MAX_CUSTOM_DOMAINS)

    def check_can_create_custom_username(self, user: User):
        if self.count_custom_usernames(user) >= config.MAX_CUSTOM_USERNAMES:
            LOG.i("%s has reached the custom username limit", user)
            raise CannotCreateUsernameQuotaExceeded(config.MAX_CUSTOM_USERNAMES)

    def alias_counts(self, user: User) -> dict:
        active = self.count_active_aliases(user)
        inactive = self.count_inactive_aliases(user)
        deleted = self.count_deleted_aliases(user)
        return {
            "total": active + inactive + deleted,
            "active": active,
            "inactive": inactive,
            "deleted": deleted,
            "limit": config.MAX_ACTIVE_ALIASES,
        }
