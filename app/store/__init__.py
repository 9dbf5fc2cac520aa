"""
Record Store package.

The backend is chosen once by configuration (STORAGE_BACKEND); services only
ever see the RecordStore interface.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import get_db
from app.store.base import (
    COLLECTIONS,
    EVALUATIONS,
    EVALUATOR_ASSIGNMENTS,
    MOVEMENT_LOGS,
    USERS,
    Record,
    RecordStore,
)
from app.store.memory import InMemoryRecordStore
from app.store.sql import SqlRecordStore

_memory_store = InMemoryRecordStore()


def memory_store() -> InMemoryRecordStore:
    """Process-wide in-memory store used when STORAGE_BACKEND=memory."""
    return _memory_store


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    """Per-request Record Store provider."""
    if settings.storage_backend == "memory":
        return _memory_store
    return SqlRecordStore(db)


__all__ = [
    "COLLECTIONS",
    "EVALUATIONS",
    "EVALUATOR_ASSIGNMENTS",
    "MOVEMENT_LOGS",
    "USERS",
    "Record",
    "RecordStore",
    "InMemoryRecordStore",
    "SqlRecordStore",
    "get_store",
    "memory_store",
]
