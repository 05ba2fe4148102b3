"""
Lifebook People Resolution - FastAPI Application Entry Point
"""

import logging

from fastapi import FastAPI, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from lifebook.config import get_settings
from lifebook.database import get_db
from lifebook.routers import people

# Initialize FastAPI app
settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Lifebook People Resolution",
    description="Duplicate detection, merge and undo for people extracted from biographies",
    version="0.1.0",
    debug=settings.debug,
)

# Include routers
app.include_router(people.router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint that also verifies database connection.
    """
    try:
        # Test database connection
        result = db.execute(text("SELECT 1"))
        result.fetchone()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"

    return {
        "status": "healthy",
        "database": db_status,
        "debug": settings.debug,
    }
