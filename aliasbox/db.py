import sqlalchemy
from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aliasbox import config
from aliasbox.log import LOG


def _engine_for(db_uri: str) -> sqlalchemy.engine.Engine:
    if db_uri.startswith("sqlite"):
        # in-memory database must be shared by all the sessions of the process
        engine = create_engine(
            db_uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        db_uri, connect_args={"application_name": config.DB_CONN_NAME}
    )


class Database:
    """Engine and session factory, built once at startup and passed to every component"""

    def __init__(self, db_uri: str):
        self.db_uri = db_uri
        self.engine = _engine_for(db_uri)
        # results are serialized after the commit that produced them
        self.Session = scoped_session(
            sessionmaker(bind=self.engine, expire_on_commit=False)
        )

    @property
    def session(self) -> sqlalchemy.orm.Session:
        # Session is actually a proxy, more info on
        # https://docs.sqlalchemy.org/en/20/orm/contextual.html#implicit-method-access
        return self.Session()

    def create_all(self):
        from aliasbox.models import Base

        LOG.d("create tables on %s", self.engine.url)
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        from aliasbox.models import Base

        Base.metadata.drop_all(self.engine)

    def remove(self):
        self.Session.remove()

    def dispose(self):
        self.Session.remove()
        self.engine.dispose()
