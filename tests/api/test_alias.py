from aliasbox import config
from aliasbox.models import Alias, DeletedAlias
from tests.utils import create_aliases, login, random_email


def test_get_aliases(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, 2, active=True)
    create_aliases(db, user, 1, active=False)

    r = flask_client.get("/api/aliases")
    assert r.status_code == 200
    assert len(r.json["aliases"]) == 3
    for a in r.json["aliases"]:
        assert "id" in a
        assert "email" in a
        assert "description" in a
        assert "enabled" in a
        assert "creation_date" in a
        assert "creation_timestamp" in a

    r = flask_client.get("/api/aliases?filter=active")
    assert len(r.json["aliases"]) == 2
    assert all(a["enabled"] for a in r.json["aliases"])

    r = flask_client.get("/api/aliases?filter=inactive")
    assert len(r.json["aliases"]) == 1

    r = flask_client.get("/api/aliases?filter=everything")
    assert r.status_code == 400


def test_create_alias(flask_client, db):
    user = login(flask_client, db)
    address = random_email()

    r = flask_client.post(
        "/api/aliases", json={"email": address, "description": "Shopping"}
    )

    assert r.status_code == 201
    assert r.json["message"] == "Alias has been saved."
    assert r.json["email"] == address
    assert r.json["enabled"] is True
    assert db.session.query(Alias).filter_by(user_id=user.id).count() == 1

    # same address again
    r = flask_client.post(
        "/api/aliases", json={"email": address, "description": "Shopping"}
    )
    assert r.status_code == 409

    r = flask_client.post("/api/aliases", json={"email": random_email()})
    assert r.status_code == 400
    assert r.json["error"] == "Description cannot be empty."


def test_create_alias_quota(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, config.MAX_ACTIVE_ALIASES)

    r = flask_client.post(
        "/api/aliases", json={"email": random_email(), "description": "Test"}
    )
    assert r.status_code == 400
    assert str(config.MAX_ACTIVE_ALIASES) in r.json["error"]

    # an inactive one is fine
    r = flask_client.post(
        "/api/aliases",
        json={"email": random_email(), "description": "Test", "enabled": False},
    )
    assert r.status_code == 201
    assert r.json["enabled"] is False


def test_search_aliases(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, 2)
    Alias.create(
        db.session,
        user_id=user.id,
        email=random_email(),
        description="My bank",
        commit=True,
    )

    r = flask_client.get("/api/aliases/search?q=BANK")
    assert r.status_code == 200
    assert [a["description"] for a in r.json["aliases"]] == ["My bank"]

    r = flask_client.get("/api/aliases/search?q=")
    assert r.json["aliases"] == []


def test_get_alias_counts(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, 2, active=True)
    create_aliases(db, user, 1, active=False)

    r = flask_client.get("/api/aliases/counts")

    assert r.status_code == 200
    assert r.json == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "deleted": 0,
        "limit": config.MAX_ACTIVE_ALIASES,
    }


def test_get_applications(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, 2)
    Alias.create(
        db.session, user_id=user.id, email=random_email(), description="Bank", commit=True
    )

    r = flask_client.get("/api/aliases/applications")

    assert r.status_code == 200
    assert [app["name"] for app in r.json["applications"]] == ["Bank", "Test"]
    assert len(r.json["applications"][1]["aliases"]) == 2


def test_generate_aliases(flask_client, db):
    user = login(flask_client, db)

    r = flask_client.post(
        "/api/aliases/generate", json={"description": "Shopping", "count": 3}
    )

    assert r.status_code == 200
    assert len(r.json["aliases"]) == 3
    for address in r.json["aliases"]:
        assert "+Shopping-" in address
        assert address.endswith("@mailbox.com")
    # nothing is saved
    assert db.session.query(Alias).filter_by(user_id=user.id).count() == 0

    r = flask_client.post(
        "/api/aliases/generate", json={"description": "Shopping", "length": 10}
    )
    assert r.status_code == 400

    r = flask_client.post(
        "/api/aliases/generate", json={"description": "Shopping", "username": "unknown"}
    )
    assert r.status_code == 403


def test_update_alias(flask_client, db):
    user = login(flask_client, db)
    alias_id = create_aliases(db, user, 1)[0].id

    r = flask_client.patch(f"/api/aliases/{alias_id}", json={"enabled": False})
    assert r.status_code == 200
    assert r.json["enabled"] is False
    assert not db.session.get(Alias, alias_id).is_active

    r = flask_client.patch(f"/api/aliases/{alias_id}", json={"enabled": "no"})
    assert r.status_code == 400


def test_update_alias_quota(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, config.MAX_ACTIVE_ALIASES)
    alias_id = create_aliases(db, user, 1, active=False)[0].id

    r = flask_client.patch(f"/api/aliases/{alias_id}", json={"enabled": True})

    assert r.status_code == 400
    assert not db.session.get(Alias, alias_id).is_active


def test_alias_of_another_user(flask_client, db):
    login(flask_client, db)
    other_user = login(flask_client.application.test_client(), db)
    alias_id = create_aliases(db, other_user, 1)[0].id

    r = flask_client.patch(f"/api/aliases/{alias_id}", json={"enabled": False})
    assert r.status_code == 403

    r = flask_client.delete(f"/api/aliases/{alias_id}")
    assert r.status_code == 403
    assert r.json["error"] == "Failed to delete alias. Not found or no permission."

    alias = db.session.get(Alias, alias_id)
    assert alias is not None
    assert alias.is_active


def test_delete_alias(flask_client, db):
    user = login(flask_client, db)
    alias_id = create_aliases(db, user, 1)[0].id

    r = flask_client.delete(f"/api/aliases/{alias_id}")

    assert r.status_code == 200
    assert r.json["deleted"] is True
    assert r.json["message"] == "Alias has been moved to the deleted history."
    assert db.session.get(Alias, alias_id) is None
    assert db.session.get(DeletedAlias, alias_id) is not None


def test_activate_aliases(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, config.MAX_ACTIVE_ALIASES - 1)
    create_aliases(db, user, 3, active=False)

    r = flask_client.post("/api/aliases/activate", json={})

    assert r.status_code == 200
    assert r.json["nb_activated"] == 1
    assert r.json["partial"] is True
    assert "2 alias(es) remain inactive" in r.json["message"]

    r = flask_client.post("/api/aliases/activate", json={"ids": "all"})
    assert r.status_code == 400
    assert r.json["error"] == "ids must be a list of alias ids"


def test_deactivate_aliases(flask_client, db):
    user = login(flask_client, db)
    alias_ids = [a.id for a in create_aliases(db, user, 3)]

    r = flask_client.post("/api/aliases/deactivate", json={"ids": alias_ids[:2]})

    assert r.status_code == 200
    assert r.json["nb_deactivated"] == 2
    assert r.json["partial"] is False
    assert (
        db.session.query(Alias).filter_by(user_id=user.id, is_active=True).count() == 1
    )


def test_delete_aliases(flask_client, db):
    user = login(flask_client, db)
    create_aliases(db, user, 2, active=True)
    create_aliases(db, user, 2, active=False)

    r = flask_client.post("/api/aliases/delete", json={"state": "inactive"})
    assert r.status_code == 200
    assert r.json["nb_deleted"] == 2
    assert (
        r.json["message"]
        == "Selected inactive aliases have been moved to the deleted history."
    )

    # again, nothing left
    r = flask_client.post("/api/aliases/delete", json={"state": "inactive"})
    assert r.status_code == 200
    assert r.json["nb_deleted"] == 0
    assert r.json["message"] == "No matching inactive aliases to delete."

    assert db.session.query(Alias).filter_by(user_id=user.id).count() == 2
    assert db.session.query(DeletedAlias).filter_by(user_id=user.id).count() == 2


def test_create_alias_wrong_types(flask_client, db):
    user = login(flask_client, db)

    r = flask_client.post(
        "/api/aliases", json={"email": random_email(), "description": 5}
    )
    assert r.status_code == 400
    assert r.json["error"] == "Description must be a string."

    r = flask_client.post("/api/aliases", json={"email": 123, "description": "Shop"})
    assert r.status_code == 400
    assert r.json["error"] == "Please enter a valid email address."

    assert db.session.query(Alias).filter_by(user_id=user.id).count() == 0
