"""
Database engine/session management for the order-tracking core.

Connection string resolution order:
1) DATABASE_URL env var if set (a leading `psql ` prefix is stripped and
   `postgres://` is normalized to `postgresql://`).
2) DB_HOST / DB_PORT / DB_NAME / DB_USER / DB_PASSWORD, assembled into a MySQL URL
   when DB_NAME is present.
3) Otherwise a local SQLite file.

There is no module-level engine. Callers build a `Database` and hand it to the
directory, catalog, ledger and reporting engine explicitly.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator, Mapping, Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from order_tracking.db.base import Base

logger = structlog.get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./ecommerce.db"


def _normalize_database_url(raw: str) -> Optional[str]:
    """Clean up a connection string copied from a client command line or a PaaS env var."""
    raw = raw.strip()
    if not raw:
        return None

    # Common format: "psql postgresql://...."
    if raw.startswith("psql "):
        raw = raw[len("psql ") :].strip()

    # Accept both "postgresql://" and "postgres://"
    if raw.startswith("postgres://"):
        raw = "postgresql://" + raw[len("postgres://") :]

    return raw


def _url_from_parts(env: Mapping[str, str]) -> Optional[str]:
    """Build a MySQL URL from the discrete DB_* variables, if DB_NAME is set."""
    database = env.get("DB_NAME")
    if not database:
        return None

    port = env.get("DB_PORT")
    url = URL.create(
        "mysql+pymysql",
        username=env.get("DB_USER") or None,
        password=env.get("DB_PASSWORD") or None,
        host=env.get("DB_HOST") or "localhost",
        port=int(port) if port else None,
        database=database,
    )
    return url.render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def resolve_database_url(env: Optional[Mapping[str, str]] = None) -> str:
    """Resolve the database URL from DATABASE_URL, the DB_* variables, or the SQLite fallback."""
    env = os.environ if env is None else env

    env_url = env.get("DATABASE_URL")
    if env_url:
        normalized = _normalize_database_url(env_url)
        if normalized:
            return normalized

    from_parts = _url_from_parts(env)
    if from_parts:
        return from_parts

    return DEFAULT_DATABASE_URL


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES/ON DELETE unless this is set per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str, echo: bool = False) -> Engine:
    url = make_url(database_url)
    kwargs = {"pool_pre_ping": True, "echo": echo}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


class Database:
    """
    Handle on one relational backend: an engine plus a session factory.

    Every component of the core receives this object in its constructor; it is the
    only path to persistence.
    """

    def __init__(self, database_url: Optional[str] = None, *, echo: bool = False) -> None:
        self.url = database_url or resolve_database_url()
        self.engine: Engine = _build_engine(self.url, echo=echo)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def __repr__(self) -> str:
        return f"Database({make_url(self.url).render_as_string(hide_password=True)!r})"

    # PUBLIC_INTERFACE
    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        Yield a session inside a begun transaction.

        Commits when the block exits normally; rolls back everything written in the
        block when it raises, then re-raises. The session is always closed.
        """
        with self.session_factory.begin() as session:
            yield session

    def create_schema(self) -> None:
        """Create the customers, products, orders and order_items tables if missing."""
        Base.metadata.create_all(self.engine)
        logger.info("schema_created", tables=sorted(Base.metadata.tables))

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self.engine)
        logger.info("schema_dropped")

    # PUBLIC_INTERFACE
    def healthcheck(self) -> bool:
        """
        Perform a simple DB liveness check.

        Returns:
            bool: True if DB is reachable and responds to `SELECT 1`, else False.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("database_unreachable", error=str(exc))
            return False

    def dispose(self) -> None:
        self.engine.dispose()
