# /app/services/database_service.py

"""
The persistent store. The application keeps its entire state as a single JSON
document, so the store only needs two operations: `put` overwrites the value
stored under a key and `get` returns the latest value (or None).

A fresh SQLAlchemy session is opened for every call. The state controller is a
long-lived, process-wide object, so it cannot hold on to a request-scoped
session the way the routers do.
"""

from typing import Any, Callable, Optional
from sqlalchemy.orm import Session

from app.db.database import SessionLocal
from .database_helpers.kv_repository_sql import KeyValueRepositorySQL

# --- Well-known keys ---
SNAPSHOT_KEY = "appData"
ONBOARDING_KEY = "hasSeenOnboarding"


class DatabaseService:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        with self.session_factory() as session:
            return KeyValueRepositorySQL(session).get_value(key)

    def put(self, key: str, value: Any) -> None:
        with self.session_factory() as session:
            KeyValueRepositorySQL(session).put_value(key, value)
