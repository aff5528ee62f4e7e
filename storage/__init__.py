"""Storage backends and the request dependency that selects one"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import settings
from db import get_db
from storage.base import Storage
from storage.database import DatabaseStorage
from storage.memory import MemStorage

__all__ = ["Storage", "DatabaseStorage", "MemStorage", "get_storage", "create_app_storage"]


def create_app_storage():
    """Process-wide storage for the memory backend; the database backend is per request"""
    if settings.STORAGE_BACKEND.lower() == "memory":
        return MemStorage()
    return None


def get_storage(request: Request, db: Session = Depends(get_db)) -> Storage:
    """
    FastAPI dependency returning the configured repository

    The in-memory store lives on ``app.state.storage`` when selected at
    startup; otherwise each request gets a ``DatabaseStorage`` over its own
    session.
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is not None:
        return storage
    return DatabaseStorage(db)
