# /app/models/state_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any

from .class_model import ClassGroup
from .student_model import Student
from .report_model import ArchivedReport

# --- Model Definitions ---

class AppState(BaseModel):
    """
    The aggregate root. This is exactly the document that is persisted,
    exported and imported. `savedReports` is ordered newest first.
    """
    grades: List[ClassGroup] = Field(default_factory=list)
    students: List[Student] = Field(default_factory=list)
    savedReports: List[ArchivedReport] = Field(default_factory=list)
    referenceText: str = ""


class ReferenceTextUpdate(BaseModel):
    referenceText: str = ""


class SessionInfo(BaseModel):
    """Transient, per-process state that is never part of the snapshot."""
    activeGradeId: Optional[str] = None
    activeStudentId: Optional[str] = None
    comparisonSelection: List[str] = Field(default_factory=list)
    showOnboarding: bool = False
    analysesInFlight: List[str] = Field(default_factory=list)


class ComparisonResponse(BaseModel):
    selection: List[str]
    rows: List[Dict[str, Any]]
