from aliasbox import config
from aliasbox.custom_domain_utils import (
    CustomDomainRegistry,
    is_valid_domain,
    sanitize_domain,
)
from aliasbox.errors import ErrorKind
from aliasbox.models import CustomDomain
from tests.utils import create_new_user, random_domain


def test_is_valid_domain():
    assert is_valid_domain("example.com") is True
    assert is_valid_domain("sub.example.com") is True
    assert is_valid_domain("a-b.example.com") is True
    assert is_valid_domain("example.com.") is True

    assert is_valid_domain("-example.com") is False
    assert is_valid_domain("example-.com") is False
    assert is_valid_domain("exa mple.com") is False
    assert is_valid_domain("example..com") is False
    assert is_valid_domain("a" * 64 + ".com") is False


def test_sanitize_domain():
    assert sanitize_domain(" Example.COM ") == "example.com"
    assert sanitize_domain("http://example.com") == "example.com"
    assert sanitize_domain("https://example.com") == "example.com"
    assert sanitize_domain(None) == ""


def test_create_domain(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)

    result = registry.create_domain(user, "https://My-Domain.com", "For work")

    assert result.success
    assert result.message == "New domain my-domain.com is created"
    custom_domain = db.session.query(CustomDomain).filter_by(user_id=user.id).one()
    assert custom_domain.domain == "my-domain.com"
    assert custom_domain.description == "For work"
    assert custom_domain.is_active


def test_create_domain_validation(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)

    result = registry.create_domain(user, "ab")
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "Domain name must be at least 3 characters."

    result = registry.create_domain(user, "not a domain")
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "This is not a valid domain"

    assert db.session.query(CustomDomain).count() == 0


def test_create_domain_duplicate(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)

    assert registry.create_domain(user, "example.com").success
    result = registry.create_domain(user, "EXAMPLE.com")

    assert result.error_kind == ErrorKind.Conflict
    assert result.error == "You have already added this domain."

    # the same domain can be added by someone else
    assert registry.create_domain(create_new_user(db), "example.com").success


def test_create_domain_quota(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)
    for _ in range(config.MAX_CUSTOM_DOMAINS):
        assert registry.create_domain(user, random_domain()).success

    result = registry.create_domain(user, random_domain())

    assert result.error_kind == ErrorKind.QuotaExceeded
    assert (
        db.session.query(CustomDomain).filter_by(user_id=user.id).count()
        == config.MAX_CUSTOM_DOMAINS
    )


def test_update_domain(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)
    first = registry.create_domain(user, "first.com").data
    registry.create_domain(user, "second.com")

    result = registry.update_domain(user, first.id, "renamed.com", "new description")
    assert result.success
    assert db.session.get(CustomDomain, first.id).domain == "renamed.com"
    assert db.session.get(CustomDomain, first.id).description == "new description"

    result = registry.update_domain(user, first.id, "second.com")
    assert result.error_kind == ErrorKind.Conflict
    assert result.error == "This domain name is already in use by another of your domains."
    assert db.session.get(CustomDomain, first.id).domain == "renamed.com"

    result = registry.update_domain(user, first.id, "x")
    assert result.error_kind == ErrorKind.ValidationFailed


def test_domain_of_another_user(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)
    custom_domain = registry.create_domain(create_new_user(db), "example.com").data

    result = registry.update_domain(user, custom_domain.id, "other.com")
    assert result.error_kind == ErrorKind.NotFoundOrForbidden
    assert (
        result.error
        == "Failed to update domain. Domain not found or you do not have permission."
    )

    assert (
        registry.set_domain_active(user, custom_domain.id, False).error_kind
        == ErrorKind.NotFoundOrForbidden
    )
    assert (
        registry.delete_domain(user, custom_domain.id).error_kind
        == ErrorKind.NotFoundOrForbidden
    )
    assert registry.list_domains(user).data == []

    custom_domain = db.session.get(CustomDomain, custom_domain.id)
    assert custom_domain.domain == "example.com"
    assert custom_domain.is_active


def test_set_domain_active_and_delete(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)
    custom_domain = registry.create_domain(user, "example.com").data

    assert not registry.set_domain_active(user, custom_domain.id, False).data.is_active
    assert registry.set_domain_active(user, custom_domain.id, True).data.is_active

    result = registry.delete_domain(user, custom_domain.id)
    assert result.message == "Domain has been deleted."
    assert registry.list_domains(user).data == []


def test_create_domain_wrong_types(db):
    user = create_new_user(db)
    registry = CustomDomainRegistry(db)

    result = registry.create_domain(user, 123)
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "This is not a valid domain"

    result = registry.create_domain(user, random_domain(), ["Personal"])
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "Description must be a string."

    assert db.session.query(CustomDomain).count() == 0
