"""
Database module - storage backend selection.

The backend is chosen once at startup from settings.storage_backend and
kept on app.state; routes reach it through the get_storage dependency.
"""

import logging

from fastapi import Request

from app.core.config import Settings
from app.db.memory import MemoryStorage
from app.db.postgres import SqlStorage, create_db_engine
from app.db.storage import Storage

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "postgres":
        logger.info("Using PostgreSQL storage")
        return SqlStorage(create_db_engine(settings.sqlalchemy_url, echo=settings.debug))
    logger.info("Using in-memory storage (data is lost on restart)")
    return MemoryStorage()


def get_storage(request: Request) -> Storage:
    """
    Dependency for FastAPI route injection.
    Usage:
        @app.get("/jobs")
        async def list_jobs(storage: Storage = Depends(get_storage)):
            ...
    """
    return request.app.state.storage


__all__ = [
    "MemoryStorage",
    "SqlStorage",
    "Storage",
    "build_storage",
    "create_db_engine",
    "get_storage",
]
