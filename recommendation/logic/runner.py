"""
Generation Runner

Orchestrates letter generation for a stored recommendation request:
1. Converts ORM rows into engine contracts
2. Runs the composer
3. Replaces the request's generated letters

No template logic lives here.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from models.models import College, GeneratedLetter, RecommendationRequest, Student
from .composer import count_words, generate_letters
from .constants import RequestStatus
from .contracts import AnswerItem, InstitutionProfile, StudentProfile
from .errors import NoAnswersError
from .progress import advance_version

logger = logging.getLogger(__name__)


def student_profile_from(student: Student) -> StudentProfile:
    return StudentProfile(
        id=student.id,
        name=student.name,
        gpa=student.gpa,
        subjects=list(student.subjects or []),
        extracurriculars=list(student.extracurriculars or []),
    )


def institution_profile_from(college: College) -> InstitutionProfile:
    return InstitutionProfile(
        id=college.id,
        name=college.name,
        type=college.type or "other",
        values=list(college.values or []),
        characteristics=list(college.characteristics or []),
    )


def answers_from(request: RecommendationRequest) -> List[AnswerItem]:
    return [
        AnswerItem(question_id=a.question_id, response=a.response, notes=a.notes)
        for a in request.answers
    ]


def run_generation(db: Session, request: RecommendationRequest) -> List[GeneratedLetter]:
    """
    Compose letters from the request's saved answers and store them.

    Previously generated letters of the request are deleted first.

    Raises:
        NoAnswersError: the request has no saved answers
    """
    answers = answers_from(request)
    if not answers:
        raise NoAnswersError("No answers found. Please complete the questionnaire first.")

    drafts = generate_letters(
        student_profile_from(request.student),
        institution_profile_from(request.college),
        answers,
    )

    request.generated_letters.clear()
    db.flush()

    now = datetime.utcnow()
    letters = [
        GeneratedLetter(
            id=draft.id,
            position=i,
            content=draft.content,
            tone=draft.tone.value,
            focus=[f.value for f in draft.focus],
            word_count=draft.word_count,
            created_at=now,
            updated_at=now,
        )
        for i, draft in enumerate(drafts)
    ]
    request.generated_letters.extend(letters)
    advance_version(db, request, request.status != RequestStatus.COMPLETED.value)
    request.status = RequestStatus.COMPLETED.value
    request.updated_at = now
    db.flush()

    logger.info("Generated %d letters for request %s", len(letters), request.id)
    return letters


def edit_letter(db: Session, letter: GeneratedLetter, content: str) -> GeneratedLetter:
    """Replace a letter's full text during review."""
    letter.content = content
    letter.word_count = count_words(content)
    letter.updated_at = datetime.utcnow()
    db.flush()
    return letter
