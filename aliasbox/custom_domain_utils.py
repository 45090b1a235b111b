import re
from typing import List, Optional

from aliasbox.action_result import ActionResult, as_action_result
from aliasbox.db import Database
from aliasbox.errors import Conflict, NotFoundOrForbidden, ValidationFailed
from aliasbox.log import LOG
from aliasbox.models import CustomDomain, User
from aliasbox.quota import QuotaEngine
from aliasbox.utils import ensure_str

_ALLOWED_DOMAIN_REGEX = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_MIN_DOMAIN_LENGTH = 3


def is_valid_domain(domain: str) -> bool:
    """
    Checks that a domain is valid according to RFC 1035
    """
    if len(domain) > 255:
        return False
    if domain.endswith("."):
        domain = domain[:-1]  # Strip the trailing dot
    labels = domain.split(".")
    if not labels:
        return False
    for label in labels:
        if not _ALLOWED_DOMAIN_REGEX.match(label):
            return False
    return True


def sanitize_domain(domain: Optional[str]) -> str:
    new_domain = (domain or "").lower().strip()
    if new_domain.startswith("http://"):
        new_domain = new_domain[len("http://") :]

    if new_domain.startswith("https://"):
        new_domain = new_domain[len("https://") :]

    return new_domain


def _validate_domain(domain: Optional[str]) -> str:
    ensure_str(domain, "This is not a valid domain")
    new_domain = sanitize_domain(domain)
    if len(new_domain) < _MIN_DOMAIN_LENGTH:
        raise ValidationFailed(
            f"Domain name must be at least {_MIN_DOMAIN_LENGTH} characters."
        )
    if not is_valid_domain(new_domain):
        raise ValidationFailed("This is not a valid domain")
    return new_domain


class CustomDomainRegistry:
    def __init__(self, db: Database, quota: Optional[QuotaEngine] = None):
        self._db = db
        self._quota = quota or QuotaEngine(db)

    def _get_domain(self, user: User, domain_id: str, action: str) -> CustomDomain:
        custom_domain = (
            self._db.session.query(CustomDomain)
            .filter(CustomDomain.id == domain_id, CustomDomain.user_id == user.id)
            .first()
        )
        if custom_domain is None:
            raise NotFoundOrForbidden(
                f"Failed to {action}. Domain not found or you do not have permission."
            )
        return custom_domain

    @as_action_result(storage_error="A database error occurred while fetching domains.")
    def list_domains(self, user: User) -> List[CustomDomain]:
        return (
            self._db.session.query(CustomDomain)
            .filter(CustomDomain.user_id == user.id)
            .order_by(CustomDomain.created_at.desc())
            .all()
        )

    @as_action_result(conflict_error="You have already added this domain.")
    def create_domain(
        self, user: User, domain: str, description: Optional[str] = None
    ) -> ActionResult:
        ensure_str(description, "Description must be a string.")
        session = self._db.session
        self._quota.check_can_create_custom_domain(user)
        new_domain = _validate_domain(domain)

        existing = (
            session.query(CustomDomain)
            .filter(CustomDomain.user_id == user.id, CustomDomain.domain == new_domain)
            .first()
        )
        if existing:
            raise Conflict("You have already added this domain.")

        custom_domain = CustomDomain.create(
            session,
            user_id=user.id,
            domain=new_domain,
            description=description,
            flush=True,
        )
        session.commit()
        LOG.i("%s added %s", user, custom_domain)

        return ActionResult(data=custom_domain, message=f"New domain {new_domain} is created")

    @as_action_result(
        conflict_error="This domain name is already in use by another of your domains."
    )
    def update_domain(
        self,
        user: User,
        domain_id: str,
        domain: str,
        description: Optional[str] = None,
    ) -> ActionResult:
        ensure_str(description, "Description must be a string.")
        session = self._db.session
        new_domain = _validate_domain(domain)
        custom_domain = self._get_domain(user, domain_id, "update domain")

        custom_domain.domain = new_domain
        custom_domain.description = description
        # the (user_id, domain) constraint reports a clash with another domain
        session.flush()
        session.commit()
        LOG.i("%s updated %s", user, custom_domain)

        return ActionResult(data=custom_domain, message="Domain has been updated.")

    @as_action_result(storage_error="Failed to update domain status.")
    def set_domain_active(self, user: User, domain_id: str, active: bool) -> ActionResult:
        session = self._db.session
        custom_domain = self._get_domain(user, domain_id, "update domain status")
        custom_domain.is_active = active
        session.commit()
        LOG.i("%s set %s active=%s", user, custom_domain, active)

        return ActionResult(data=custom_domain)

    @as_action_result(storage_error="Failed to delete domain.")
    def delete_domain(self, user: User, domain_id: str) -> ActionResult:
        session = self._db.session
        custom_domain = self._get_domain(user, domain_id, "delete domain")
        LOG.w("%s deletes %s", user, custom_domain)
        session.delete(custom_domain)
        session.commit()

        return ActionResult(message="Domain has been deleted.")
