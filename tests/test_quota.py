import pytest

from aliasbox import config
from aliasbox.errors import (
    CannotActivateAliasQuotaExceeded,
    CannotCreateDomainQuotaExceeded,
    CannotCreateUsernameQuotaExceeded,
)
from aliasbox.models import CustomDomain, CustomUsername, DeletedAlias
from aliasbox.quota import QuotaEngine
from tests.utils import create_aliases, create_new_user, random_domain, random_email


def test_counts_are_per_user_and_per_state(db):
    user = create_new_user(db)
    other_user = create_new_user(db)
    create_aliases(db, user, 3, active=True)
    create_aliases(db, user, 2, active=False)
    create_aliases(db, other_user, 4, active=True)
    DeletedAlias.create(
        db.session, user_id=user.id, email=random_email(), description="", commit=True
    )

    quota = QuotaEngine(db)
    assert quota.count_active_aliases(user) == 3
    assert quota.count_inactive_aliases(user) == 2
    assert quota.count_deleted_aliases(user) == 1
    assert quota.remaining_active_slots(user) == config.MAX_ACTIVE_ALIASES - 3
    assert quota.alias_counts(user) == {
        "total": 6,
        "active": 3,
        "inactive": 2,
        "deleted": 1,
        "limit": config.MAX_ACTIVE_ALIASES,
    }


def test_check_can_activate_alias(db):
    user = create_new_user(db)
    quota = QuotaEngine(db)
    create_aliases(db, user, config.MAX_ACTIVE_ALIASES - 1)

    quota.check_can_activate_alias(user)
    assert quota.can_activate_alias(user)

    create_aliases(db, user, 1)
    assert not quota.can_activate_alias(user)
    assert quota.remaining_active_slots(user) == 0
    with pytest.raises(CannotActivateAliasQuotaExceeded) as e:
        quota.check_can_activate_alias(user)
    assert str(config.MAX_ACTIVE_ALIASES) in e.value.error_for_user()

    # inactive aliases are not counted
    create_aliases(db, user, 3, active=False)
    assert quota.remaining_active_slots(user) == 0


def test_check_can_create_custom_domain(db):
    user = create_new_user(db)
    quota = QuotaEngine(db)
    for _ in range(config.MAX_CUSTOM_DOMAINS):
        quota.check_can_create_custom_domain(user)
        CustomDomain.create(db.session, user_id=user.id, domain=random_domain())
    db.session.commit()

    with pytest.raises(CannotCreateDomainQuotaExceeded):
        quota.check_can_create_custom_domain(user)


def test_check_can_create_custom_username(db):
    user = create_new_user(db)
    quota = QuotaEngine(db)
    for _ in range(config.MAX_CUSTOM_USERNAMES):
        quota.check_can_create_custom_username(user)
        CustomUsername.create(db.session, user_id=user.id, username=random_email())
    db.session.commit()

    with pytest.raises(CannotCreateUsernameQuotaExceeded) as e:
        quota.check_can_create_custom_username(user)
    assert (
        e.value.error_for_user()
        == f"You have reached the maximum limit of {config.MAX_CUSTOM_USERNAMES} custom usernames."
    )
