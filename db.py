import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from config import settings

from utils.structured_logging import get_logger, LogCategory

logger = get_logger("database")


def resolve_database_url() -> str:
    """SQLite under NODE_ENV=test, otherwise the configured PostgreSQL URL"""
    if settings.NODE_ENV == "test":
        return os.getenv("SQLALCHEMY_TEST_DATABASE_URL", "sqlite:///./test.db")
    return settings.POSTGRES_URL


DATABASE_URL = resolve_database_url()
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_timeout=30,
        connect_args={"connect_timeout": 10, "application_name": "learnhub_api"},
    )


engine = build_engine(DATABASE_URL)


@event.listens_for(engine, "connect")
def set_connection_settings(dbapi_connection, connection_record):
    """Enable SQLite foreign keys, or cap PostgreSQL statement time"""
    statement = "PRAGMA foreign_keys=ON" if IS_SQLITE else "SET statement_timeout = '30s'"
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(statement)
    except Exception as e:
        logger.warning(f"Could not apply connection setting {statement!r}: {e}", category=LogCategory.DATABASE)
    finally:
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_sqlite_schema() -> None:
    """Create tables directly for SQLite; PostgreSQL schemas come from Alembic"""
    if not IS_SQLITE:
        return
    from models import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Created SQLite schema", category=LogCategory.DATABASE, extra={"url": DATABASE_URL})


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
