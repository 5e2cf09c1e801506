from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from typing import Optional
from functools import lru_cache

from mythboard.core.config import get_settings

# database files per environment
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"

Base = declarative_base()


def resolve_database_url() -> str:
    """Pick the database URL for the current APP_ENV"""
    settings = get_settings()
    if settings.APP_ENV == "test":
        return SQLITE_TEST_DB
    if settings.APP_ENV == "production":
        return settings.DATABASE_URL or SQLITE_PROD_DB
    return settings.DATABASE_URL or SQLITE_DEV_DB


@lru_cache()
def get_engine():
    """Get the database engine"""
    database_url = resolve_database_url()
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


def get_session_maker():
    """Get the session factory"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_session():
    """Get a database session"""
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_tables(db_engine: Optional[object] = None):
    """Create all tables

    Args:
        db_engine: optional engine, the default engine is used when omitted
    """
    # register every model on Base.metadata
    from mythboard.models import favorite, post, reaction, review, user  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)
