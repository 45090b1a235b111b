import os

# use the tests/test.env config fle
# flake8: noqa: E402

os.environ["CONFIG"] = os.path.abspath(
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "tests/test.env")
)

import pytest

from aliasbox import config
from aliasbox.db import Database
from server import create_app


@pytest.fixture
def db():
    # a fresh in-memory database per test
    database = Database("sqlite://")
    database.create_all()
    try:
        yield database
    finally:
        database.Session.rollback()
        database.drop_all()
        database.dispose()


@pytest.fixture
def flask_app(db):
    app = create_app(db=db)
    app.config["TESTING"] = True
    yield app


@pytest.fixture
def flask_client(flask_app):
    # disable rate limit during test
    config.DISABLE_RATE_LIMIT = True
    try:
        yield flask_app.test_client()
    finally:
        # disable rate limit again as some tests might enable rate limit
        config.DISABLE_RATE_LIMIT = True
