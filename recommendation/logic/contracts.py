"""
Data Contracts for the Letter Engine

Pydantic models passed between the question resolver, the progress
tracker, the composer and the API layer. JSON keys are camelCase on the
wire; Python code uses the snake_case field names.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import Category, Phase, Tone


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class StudentProfile(CamelModel):
    """The parts of a student record the composer reads."""
    id: Optional[str] = None
    name: str
    gpa: Optional[float] = None
    subjects: List[str] = Field(default_factory=list)
    extracurriculars: List[str] = Field(default_factory=list)


class InstitutionProfile(CamelModel):
    """
    Target institution. `type` stays a plain string so that values outside
    the known enumeration fall back to generic prose instead of failing.
    """
    id: Optional[str] = None
    name: str
    type: str = "other"
    values: List[str] = Field(default_factory=list)
    characteristics: List[str] = Field(default_factory=list)


class AnswerItem(CamelModel):
    question_id: str = Field(min_length=1, max_length=64)
    response: str
    notes: Optional[str] = None


def dedupe_answers(answers: Sequence[AnswerItem]) -> List[AnswerItem]:
    """One answer per question: later submissions replace earlier ones in place."""
    by_question: Dict[str, AnswerItem] = {}
    for answer in answers:
        by_question[answer.question_id] = answer
    return list(by_question.values())


class Question(CamelModel):
    id: str
    text: str
    category: Category
    required: bool = True
    follow_up: Optional[str] = None


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class LetterDraft(CamelModel):
    """A composed letter before it is persisted."""
    id: str
    content: str
    tone: Tone
    focus: List[Category]
    word_count: int
    created_at: datetime


class ProgressSnapshot(CamelModel):
    """What a teacher resumes from: the saved answers and where they stopped."""
    answers: List[AnswerItem] = Field(default_factory=list)
    current_question_index: int = 0


class SaveProgressPayload(CamelModel):
    current_question_index: int = Field(ge=0)
    answers: List[AnswerItem] = Field(default_factory=list)
    phase: Optional[Phase] = None
    expected_version: Optional[int] = Field(default=None, ge=0)


class SaveProgressResult(CamelModel):
    message: str = "Progress saved successfully"
    current_question_index: int
    answers_count: int
    version: int


class ProgressMarker(CamelModel):
    """Persisted questionnaire position."""
    current_question_index: int = Field(ge=0)
    saved_at: Optional[datetime] = None
    total_answers: Optional[int] = None
