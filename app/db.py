from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker

import app.models  # noqa: F401  installs the soft-delete scope on every Session
from app.config import settings


class Base(DeclarativeBase):
    pass


def engine_options(database_url: str) -> dict:
    """Pool settings for ``database_url``; SQLite keeps its own pool class."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def get_engine(database_url: str | None = None):
    url = database_url or settings.database_url
    return create_engine(url, **engine_options(url))


SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)


def get_db():
    """Request-scoped session for the table endpoints, closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
