"""Database connection and session management."""

from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Build create_engine keyword arguments for a database URL.

    Server databases get a connection pool; SQLite (used for local runs and
    tests) shares a single connection across threads instead.
    """
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 10,
        "max_overflow": 20,
    }


DATABASE_URL = settings.database_url

engine = create_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session.

    Yields:
        Session: SQLAlchemy database session

    Example:
        ```python
        from catalog.database import get_db

        @app.get("/assets")
        def get_assets(db: Session = Depends(get_db)):
            return db.query(Asset).all()
        ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
