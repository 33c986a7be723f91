# /app/models/class_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field, field_validator
from typing import List

from .student_model import Student

# --- Model Definitions ---

class ClassCreate(BaseModel):
    """The model used for creating a new class."""
    name: str = Field(..., description="The display name of the class, e.g. '5A'.")

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Class name must not be blank.")
        return value


class ClassGroup(BaseModel):
    """A teacher-defined roster grouping, as stored in the snapshot."""
    id: str = Field(..., description="The unique, server-generated identifier for the class.")
    name: str


class ClassSummary(ClassGroup):
    studentCount: int = 0


class ClassDetails(ClassGroup):
    students: List[Student] = Field(default_factory=list)
