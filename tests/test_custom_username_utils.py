from aliasbox import config
from aliasbox.custom_username_utils import PRIMARY_IDENTITY_ID, CustomUsernameRegistry
from aliasbox.errors import ErrorKind
from aliasbox.models import CustomUsername
from tests.utils import create_new_user, random_email


def test_create_username(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)

    result = registry.create_username(user, " John.Doe@Work.com ", "Work")

    assert result.success
    assert result.message == "Username has been added."
    custom_username = db.session.query(CustomUsername).filter_by(user_id=user.id).one()
    assert custom_username.username == "John.Doe@Work.com"
    assert custom_username.description == "Work"
    assert custom_username.is_active


def test_create_username_validation(db):
    user = create_new_user(db, email="primary@mailbox.com")
    registry = CustomUsernameRegistry(db)

    result = registry.create_username(user, "not an email")
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "Please enter a valid email address."

    # the primary email is rejected whatever its case
    result = registry.create_username(user, "Primary@MailBox.com")
    assert result.error_kind == ErrorKind.ValidationFailed
    assert (
        result.error
        == "This is your primary email and cannot be added as a custom username."
    )

    assert db.session.query(CustomUsername).count() == 0


def test_create_username_duplicate(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    username = random_email()

    assert registry.create_username(user, username).success
    result = registry.create_username(user, username)

    assert result.error_kind == ErrorKind.Conflict
    assert result.error == "This username has already been added."


def test_create_username_quota(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    for _ in range(config.MAX_CUSTOM_USERNAMES):
        assert registry.create_username(user, random_email()).success

    result = registry.create_username(user, random_email())

    assert result.error_kind == ErrorKind.QuotaExceeded
    assert (
        result.error
        == f"You have reached the maximum limit of {config.MAX_CUSTOM_USERNAMES} custom usernames."
    )


def test_list_sending_identities(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    custom_username = registry.create_username(user, random_email(), "Work").data
    registry.create_username(create_new_user(db), random_email())

    identities = registry.list_sending_identities(user).data

    assert len(identities) == 2
    primary = identities[0]
    assert primary.id == PRIMARY_IDENTITY_ID
    assert primary.username == user.email
    assert primary.is_default
    assert primary.description == "Primary Account Email"

    assert identities[1].id == custom_username.id
    assert identities[1].description == "Work"
    assert not identities[1].is_default


def test_update_username(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    custom_username = registry.create_username(user, random_email()).data

    result = registry.update_username(user, custom_username.id, "New description")
    assert result.success
    assert db.session.get(CustomUsername, custom_username.id).description == (
        "New description"
    )

    result = registry.set_username_active(user, custom_username.id, False)
    assert not result.data.is_active


def test_username_of_another_user(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    custom_username = registry.create_username(create_new_user(db), random_email()).data

    result = registry.update_username(user, custom_username.id, "hacked")
    assert result.error_kind == ErrorKind.NotFoundOrForbidden
    assert result.error == "Failed to update username. Not found or no permission."

    result = registry.delete_username(user, custom_username.id)
    assert result.error_kind == ErrorKind.NotFoundOrForbidden
    assert db.session.get(CustomUsername, custom_username.id) is not None


def test_delete_username(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)
    custom_username = registry.create_username(user, random_email()).data

    result = registry.delete_username(user, custom_username.id)

    assert result.message == "Username has been deleted."
    assert registry.list_usernames(user).data == []
    # a deleted username frees a slot
    for _ in range(config.MAX_CUSTOM_USERNAMES):
        assert registry.create_username(user, random_email()).success


def test_create_username_wrong_types(db):
    user = create_new_user(db)
    registry = CustomUsernameRegistry(db)

    result = registry.create_username(user, 123)
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "Please enter a valid email address."

    result = registry.create_username(user, random_email(), {"text": "Work"})
    assert result.error_kind == ErrorKind.ValidationFailed
    assert result.error == "Description must be a string."

    assert db.session.query(CustomUsername).count() == 0

    custom_username = registry.create_username(user, random_email()).data
    result = registry.update_username(user, custom_username.id, 42)
    assert result.error_kind == ErrorKind.ValidationFailed
    assert db.session.get(CustomUsername, custom_username.id).description is None
