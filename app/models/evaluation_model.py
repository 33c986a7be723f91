# /app/models/evaluation_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field, ConfigDict
from typing import List

# --- Model Definitions ---

class Suggestion(BaseModel):
    """One improvement suggestion: what to work on and how."""
    model_config = ConfigDict(frozen=True)

    topic: str = ""
    action: str = ""


class Evaluation(BaseModel):
    """
    The structured grading result for one handwriting sample.

    Evaluations are immutable once produced. Scores are conventionally on a
    0-100 scale but the AI contract does not bound them, so no range is
    enforced here. Every field has a default so that a partially filled AI
    response or an older backup still validates.
    """
    model_config = ConfigDict(frozen=True)

    handwritingScore: float = Field(default=0, description="Legibility and neatness of the handwriting.")
    originalityScore: float = Field(default=0, description="How original the story is.")
    creativityScore: float = Field(default=0, description="Imagination and use of language.")
    overallScore: float = Field(default=0, description="Overall grade for the piece.")
    punctuationErrors: List[str] = Field(default_factory=list)
    conceptKnowledge: str = ""
    transcribedText: str = Field(default="", description="The text as read from the image.")
    plagiarismNote: str = ""
    weaknesses: List[str] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)


class PlagiarismComparison(BaseModel):
    """The AI's verdict on how similar the transcriptions of several students are."""
    similarityScore: float = 0
    note: str = ""
    suspiciousPairs: List[List[str]] = Field(default_factory=list)
