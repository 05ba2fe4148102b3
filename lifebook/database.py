"""
Database connection and session management.
Uses synchronous SQLAlchemy; every request gets its own session.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from lifebook.config import get_settings

# Create engine (synchronous)
settings = get_settings()
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL when DEBUG=true
    pool_pre_ping=True,  # Verify connections before use
)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
