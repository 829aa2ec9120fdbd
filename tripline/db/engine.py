"""Database engine and session factory."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tripline.config import Settings
from tripline.db.models import Base


def create_engine_from_settings(settings: Settings) -> Engine:
    """Create SQLAlchemy engine from settings.

    Raises:
        ValueError: If TRIPLINE_DATABASE_URL is unset or empty.
    """
    if not settings.database_url:
        raise ValueError(
            "TRIPLINE_DATABASE_URL must be set to a valid connection string "
            "when storage_backend is 'sql'."
        )
    return create_engine_from_url(settings.database_url)


def create_engine_from_url(database_url: str) -> Engine:
    """Create SQLAlchemy engine for ``database_url``.

    In-memory SQLite gets a single shared connection so every session sees
    the same database.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(database_url, pool_pre_ping=True, echo=False)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create sessionmaker for creating database sessions.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create tables directly; Alembic migrations are used for real deployments."""
    Base.metadata.create_all(engine)
