from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, model):
    """
    Build an INSERT for `model` that supports ON CONFLICT on the session's backend.

    PostgreSQL runs in production; SQLite backs the test-suite and local runs.
    Both dialects expose the same `on_conflict_do_update` API.
    """
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)
