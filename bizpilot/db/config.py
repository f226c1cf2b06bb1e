"""Database engine configuration and startup backend selection."""
from typing import Optional, Tuple
import logging

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from bizpilot.config import Settings

logger = logging.getLogger(__name__)

BACKEND_DATABASE = "database"
BACKEND_MEMORY = "memory"


def create_db_engine(database_url: str) -> Engine:
    """Create a SQLModel engine for PostgreSQL or SQLite."""
    if database_url.startswith("postgresql"):
        logger.info("[DB CONFIG] Using PostgreSQL database")
        return create_engine(database_url, echo=False, pool_pre_ping=True)

    logger.info(f"[DB CONFIG] Using SQLite database: {database_url}")
    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory SQLite must share one connection across sessions
        engine = create_engine(database_url, echo=False, connect_args=connect_args, poolclass=StaticPool)
    else:
        engine = create_engine(database_url, echo=False, connect_args=connect_args)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def database_available(engine: Engine) -> bool:
    """Probe the database once with SELECT 1."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"[DB CONFIG] Database probe failed: {e.__class__.__name__}")
        return False


def select_storage_backend(settings: Settings) -> Tuple[str, Optional[Engine]]:
    """
    Decide the storage backend for the lifetime of the process.

    Returns:
        (backend name, engine or None for the ephemeral backend)

    Raises:
        RuntimeError: STORAGE_BACKEND=database and the database is unusable
    """
    requested = settings.storage_backend
    if requested == BACKEND_MEMORY:
        logger.info("[DB CONFIG] STORAGE_BACKEND=memory, using ephemeral store")
        return BACKEND_MEMORY, None

    if not settings.database_url:
        if requested == BACKEND_DATABASE:
            raise RuntimeError("STORAGE_BACKEND=database requires DATABASE_URL")
        logger.warning("[DB CONFIG] DATABASE_URL not set, using ephemeral store")
        return BACKEND_MEMORY, None

    engine = create_db_engine(settings.database_url)
    if database_available(engine):
        return BACKEND_DATABASE, engine

    engine.dispose()
    if requested == BACKEND_DATABASE:
        raise RuntimeError("STORAGE_BACKEND=database but the database is unreachable")
    logger.warning("[DB CONFIG] Database unreachable, using ephemeral store")
    return BACKEND_MEMORY, None

