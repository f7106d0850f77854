import os
from typing import Iterator

import structlog
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()

log = structlog.get_logger(__name__)


class Database:
    """Owned storage handle: one engine plus its session factory."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.url = engine.url
        # IMPORTANT: do not use scoped_session with async frameworks; create a fresh Session per request
        self.session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        from .models import models  # noqa: F401

        # Ensure the directory of a file-backed SQLite database exists
        if self.url.get_backend_name() == "sqlite" and self.url.database not in (None, "", ":memory:"):
            directory = os.path.dirname(self.url.database)
            if directory:
                os.makedirs(directory, exist_ok=True)
        Base.metadata.create_all(bind=self.engine)
        log.info("database_tables_verified", tables=len(Base.metadata.tables))

    def dispose(self) -> None:
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_database(database_url: str, create_tables: bool = False) -> Database:
    """Build the storage handle for ``database_url``.

    SQLite (the embedded store) and PostgreSQL (the managed store) go through
    the same models and services; only engine options differ. The engine is
    lazy: nothing touches the database (or the filesystem) until the first
    connection, normally the app startup hook.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        engine = create_engine(database_url, future=True, **options)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        # Configure connection pool for better performance
        engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            pool_recycle=3600,  # Recycle connections after 1 hour
        )

    database = Database(engine)
    if create_tables:
        database.create_all()
    log.info("database_initialized", backend=engine.dialect.name)
    return database


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
