"""
database.py — Database Session & Connection Management

Purpose:
- Create and provide access to the database used by the backend.
- Manage SQLAlchemy Engine + Session lifecycle.
- Expose a FastAPI dependency `get_db()` that yields a session per-request.
- Own the declarative `Base` shared by every ORM model so foreign keys and
  relationships resolve across tables.

Key Characteristics:
- Synchronous SQLAlchemy engine.
- No Alembic migrations: `init_db()` creates missing tables.
- Session is opened at the start of a request and closed after the response.
  Commit / rollback is owned by the service layer, not by this dependency.

This module does NOT:
- Define ORM models (see app/models/*).
- Perform any queries or business logic.
"""

from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy Engine
# -----------------------------------------------------------------------------


def normalize_db_url(db_url: str) -> str:
    """
    Use the psycopg (v3) driver for bare postgresql:// URLs.
    """
    db_url = db_url.strip()
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections get foreign keys switched on so cascading deletes
    behave the same as on Postgres.
    """
    db_url = normalize_db_url(db_url)
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    new_engine = create_engine(
        db_url,
        pool_pre_ping=True,  # Ensures connections are valid before use
        connect_args=connect_args,
    )

    if db_url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind: Engine = None) -> None:
    """
    Create all tables registered on `Base`.
    """
    # Importing the package registers every model on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

# -----------------------------------------------------------------------------
# FastAPI Dependency
# -----------------------------------------------------------------------------

def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: yields a database session for the duration of the request.

    Usage in API endpoint:
        def endpoint(db: Session = Depends(get_db)):
            db.query(...)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
