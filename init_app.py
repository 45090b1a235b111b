from aliasbox.config import DB_URI
from aliasbox.db import Database
from aliasbox.log import LOG


def create_tables(db: Database):
    """Create the tables that don't exist yet, existing ones are left untouched"""
    db.create_all()
    LOG.i("Tables created on %s", db.engine.url)


if __name__ == "__main__":
    database = Database(DB_URI)
    try:
        create_tables(database)
    finally:
        database.dispose()
