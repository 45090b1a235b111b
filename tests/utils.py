from typing import Optional

from aliasbox.db import Database
from aliasbox.models import Alias, User
from aliasbox.utils import random_string

PASSWORD = "password"


def random_token(length: int = 10) -> str:
    return random_string(length=length, include_digits=True)


def random_email() -> str:
    return "{rand}@{rand}.com".format(rand=random_token(20))


def random_domain() -> str:
    return random_token() + ".com"


def create_new_user(db: Database, email: Optional[str] = None) -> User:
    if not email:
        email = f"user_{random_token(10)}@mailbox.com"

    user = User.create(db.session, email=email, password=PASSWORD)
    db.session.commit()

    return user


def create_aliases(db: Database, user: User, nb: int, active: bool = True) -> list:
    aliases = [
        Alias.create(
            db.session,
            user_id=user.id,
            email=f"alias_{random_token()}@mailbox.com",
            description="Test",
            is_active=active,
        )
        for _ in range(nb)
    ]
    db.session.commit()
    return aliases


def login(flask_client, db: Database, user: Optional[User] = None) -> User:
    if not user:
        user = create_new_user(db)

    r = flask_client.post(
        "/api/auth/login",
        json={"email": user.email, "password": PASSWORD},
    )

    assert r.status_code == 200
    assert r.json["session_token"]

    return user
