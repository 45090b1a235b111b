from typing import Optional

from flask import current_app, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import current_user, LoginManager

from aliasbox import config
from aliasbox.db import Database
from aliasbox.log import set_request_user
from aliasbox.models import User
from aliasbox.session_store import SessionStore

login_manager = LoginManager()


def get_db() -> Database:
    return current_app.extensions["aliasbox_db"]


def get_request_token() -> Optional[str]:
    """The session token, from the Authentication header or else the session cookie"""
    token = request.headers.get("Authentication")
    if token:
        return token.strip()
    return request.cookies.get(config.SESSION_COOKIE_NAME)


@login_manager.request_loader
def load_user_from_request(req) -> Optional[User]:
    user = SessionStore(get_db()).resolve(get_request_token())
    set_request_user(user.id if user else None)
    return user


# We want to rate limit based on:
# - If the user is not logged in: request source IP
# - If the user is logged in: user_id
def __key_func():
    if current_user.is_authenticated:
        return f"userid:{current_user.id}"
    else:
        ip_addr = get_remote_address()
        return f"ip:{ip_addr}"


# Setup rate limit facility
limiter = Limiter(key_func=__key_func)


@limiter.request_filter
def disable_rate_limit():
    return config.DISABLE_RATE_LIMIT
