# /app/models/student_model.py

# --- Core Imports ---
from enum import Enum
from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional

from .evaluation_model import Evaluation

# --- Model Definitions ---

class StudentStatus(str, Enum):
    NO_IMAGE = "no_image"
    IMAGE_PENDING = "image_pending"
    EVALUATED = "evaluated"


class StudentCreate(BaseModel):
    """The model used for creating a new student inside a class."""
    name: str = Field(..., description="The full name of the student.")

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Student name must not be blank.")
        return value


class Student(BaseModel):
    """
    The full representation of a Student, as it is stored in the snapshot and
    returned by the API.
    """
    id: str = Field(..., description="The unique, server-generated identifier for the student.")
    name: str
    gradeId: str = Field(..., description="The ID of the class this student belongs to.")
    workImage: Optional[str] = Field(default=None, description="The normalised work sample as a JPEG data URL.")
    extractedText: Optional[str] = None
    evaluation: Optional[Evaluation] = None
    # Set when a new image replaces the one the current evaluation was made from.
    awaitingAnalysis: bool = False

    @computed_field
    @property
    def status(self) -> StudentStatus:
        if not self.workImage:
            return StudentStatus.NO_IMAGE
        if self.evaluation is None or self.awaitingAnalysis:
            return StudentStatus.IMAGE_PENDING
        return StudentStatus.EVALUATED

    @property
    def current_evaluation(self) -> Optional[Evaluation]:
        """The evaluation to display, or None while a newer image awaits analysis."""
        return self.evaluation if self.status == StudentStatus.EVALUATED else None
