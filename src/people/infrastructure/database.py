"""Engine construction and schema bootstrap."""

import logging

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from people.infrastructure.persistence.schema import metadata

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(database_url: str, *, pool_size: int = 10, echo: bool = False) -> Engine:
    """Build an engine for the given URL.

    SQLite needs foreign keys switched on per connection for cascades and
    link checks; an in-memory SQLite database is shared through one connection.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            pool_pre_ping=True,
        )
    logger.info("Database engine created (dialect=%s)", engine.dialect.name)
    return engine


def ensure_schema(engine: Engine) -> None:
    """Create person tables, constraints and the modified_at trigger if missing."""
    metadata.create_all(engine)
