from typing import Tuple

from aliasbox.db import Database
from aliasbox.models import User
from aliasbox.session_store import SessionStore
from tests.utils import create_new_user


def get_new_user_and_session_token(db: Database) -> Tuple[User, str]:
    user = create_new_user(db)

    # create a session without going through the login endpoint, so no cookie is set
    token = SessionStore(db).issue(user, user_agent="for test")

    return user, token
