# /app/db/models/kv_models.py

"""
This module defines the SQLAlchemy ORM model for the application's key-value
store. The whole application state lives in ONE row (key `appData`) as a JSON
document; the onboarding flag lives in its own row so that importing a backup
never touches it.
"""

from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func

from ..base_class import Base


class AppRecord(Base):
    """A single named JSON value. Writes always replace the whole value."""
    __tablename__ = "app_records"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
