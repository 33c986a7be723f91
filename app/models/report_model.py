# /app/models/report_model.py

from pydantic import BaseModel, ConfigDict
from typing import Optional

from .evaluation_model import Evaluation


class ArchivedReport(BaseModel):
    """
    A durable copy of a past evaluation plus the names it was shown with.
    Reports live independently of the student they were made from.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    studentName: str
    gradeName: str
    timestamp: str
    evaluation: Evaluation
    workImage: Optional[str] = None
