from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from booking_auth.core.config import settings


def _engine_options(database_url: str) -> dict:
    """Extra create_engine() arguments needed by the configured backend"""
    if not database_url.startswith("sqlite"):
        return {}
    # Handlers run in FastAPI's threadpool, so sqlite connections cross threads
    options = {"connect_args": {"check_same_thread": False}}
    # An in-memory database only lives as long as its single connection
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# Create database engine - manages connection pool
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Each request gets a new session
# autocommit=False: changes require explicit commit
# autoflush=False: don't auto-flush before queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    The session is closed after the request completes, even if the
    handler raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
