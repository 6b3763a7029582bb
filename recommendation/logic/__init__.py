"""
Letter Logic Module

Deterministic question resolution, letter composition and questionnaire
session state. The database-bound progress tracker and generation runner
live in `.progress` and `.runner` and are imported explicitly.
"""

from .contracts import (
    StudentProfile,
    InstitutionProfile,
    AnswerItem,
    Question,
    LetterDraft,
    ProgressSnapshot,
    ProgressMarker,
    SaveProgressPayload,
    SaveProgressResult,
)
from .composer import LetterComposer, generate_letters
from .questions import resolve_question_set, category_for_question
from .session import QuestionnaireSession, Debouncer
from .constants import Category, FocusArea, Tone, Phase, RequestStatus, InstitutionType
from .errors import RecommendationError, NoAnswersError, StaleProgressError

__all__ = [
    # Engine
    "LetterComposer",
    "generate_letters",
    "resolve_question_set",
    "category_for_question",
    "QuestionnaireSession",
    "Debouncer",

    # Contracts
    "StudentProfile",
    "InstitutionProfile",
    "AnswerItem",
    "Question",
    "LetterDraft",
    "ProgressSnapshot",
    "ProgressMarker",
    "SaveProgressPayload",
    "SaveProgressResult",

    # Enums
    "Category",
    "FocusArea",
    "Tone",
    "Phase",
    "RequestStatus",
    "InstitutionType",

    # Errors
    "RecommendationError",
    "NoAnswersError",
    "StaleProgressError",
]
