# /app/services/database_helpers/kv_repository_sql.py

from typing import Any, Optional
from sqlalchemy.orm import Session

from app.db.models.kv_models import AppRecord


class KeyValueRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_value(self, key: str) -> Optional[Any]:
        """Returns the stored value for a key, or None if nothing was stored."""
        record = self.db.query(AppRecord).filter(AppRecord.key == key).first()
        return record.value if record else None

    def put_value(self, key: str, value: Any) -> AppRecord:
        """Stores a value under a key, overwriting any previous value."""
        record = self.db.query(AppRecord).filter(AppRecord.key == key).first()
        if record:
            record.value = value
        else:
            record = AppRecord(key=key, value=value)
            self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record
