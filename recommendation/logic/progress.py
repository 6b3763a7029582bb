"""
Questionnaire Progress Tracker

Persists and restores a teacher's position in the questionnaire.

A save replaces the whole answer set of the request, moves the progress
marker and optionally the phase. All statements run in the caller's
session, and `db.get_db` commits them together, so a save is applied
completely or not at all. Saves are idempotent: repeating a payload
leaves the same rows behind and does not bump the request version.
"""

import json
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.models import Answer, QuestionnaireProgress, RecommendationRequest
from .constants import Phase, RequestStatus
from .contracts import (
    AnswerItem,
    ProgressMarker,
    dedupe_answers,
    ProgressSnapshot,
    SaveProgressPayload,
    SaveProgressResult,
)
from .errors import StaleProgressError

logger = logging.getLogger(__name__)


def _answer_key(rows) -> List[Tuple[str, str, Optional[str]]]:
    return [(a.question_id, a.response, a.notes or None) for a in rows]


def replace_answers(db: Session, request: RecommendationRequest, answers: Sequence[AnswerItem]) -> List[Answer]:
    """Delete every stored answer of the request, then insert the given set."""
    request.answers.clear()
    # the old rows must be gone before the unique (request, question) rows come back
    db.flush()

    rows = [
        Answer(question_id=a.question_id, position=i, response=a.response, notes=a.notes or None)
        for i, a in enumerate(dedupe_answers(answers))
    ]
    request.answers.extend(rows)
    db.flush()
    return rows


def advance_version(
    db: Session,
    request: RecommendationRequest,
    changed: bool,
    expected_version: Optional[int] = None,
) -> int:
    """
    Bump the request version when `changed`, after checking the caller's
    `expected_version` (when given) against the stored one.

    Every write that alters answers, progress, phase or status goes through
    here, so a client holding an old version cannot overwrite it.

    Raises:
        StaleProgressError: expected_version was given and does not match
    """
    bump = 1 if changed else 0

    if expected_version is None:
        request.version = (request.version or 0) + bump
        return request.version

    if expected_version != request.version:
        logger.warning(
            "Rejected stale write for %s (expected v%s, at v%s)",
            request.id, expected_version, request.version,
        )
        raise StaleProgressError(expected_version, request.version)
    # compare-and-swap against writers that committed after our read
    result = db.execute(
        update(RecommendationRequest)
        .where(
            RecommendationRequest.id == request.id,
            RecommendationRequest.version == expected_version,
        )
        .values(version=expected_version + bump)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.refresh(request)
        raise StaleProgressError(expected_version, request.version)
    request.version = expected_version + bump
    return request.version


def save_answer_set(
    db: Session,
    request: RecommendationRequest,
    answers: Sequence[AnswerItem],
    expected_version: Optional[int] = None,
) -> List[Answer]:
    """
    Replace the answer set without moving the questionnaire position.

    The stored marker keeps its index but its answer count follows the
    new set.
    """
    answers = dedupe_answers(answers)
    advance_version(db, request, _answer_key(request.answers) != _answer_key(answers), expected_version)
    rows = replace_answers(db, request, answers)
    request.status = RequestStatus.IN_PROGRESS.value
    request.updated_at = datetime.utcnow()
    if request.progress is not None:
        request.progress.total_answers = len(rows)
    db.flush()
    return rows


def update_phase(
    db: Session,
    request: RecommendationRequest,
    phase: Phase,
    status: Optional[RequestStatus] = None,
    expected_version: Optional[int] = None,
) -> None:
    changed = phase.value != request.current_phase or (status is not None and status.value != request.status)
    advance_version(db, request, changed, expected_version)
    request.current_phase = phase.value
    if status is not None:
        request.status = status.value
    request.updated_at = datetime.utcnow()
    db.flush()


def save_progress(db: Session, request: RecommendationRequest, payload: SaveProgressPayload) -> SaveProgressResult:
    """
    Replace answers, move the marker and optionally the phase.

    Args:
        db: Session owned by the caller; committed by the caller
        request: The teacher's recommendation request
        payload: Index, full answer set, optional phase and expected version

    Raises:
        StaleProgressError: expected_version was given and does not match
    """
    answers = dedupe_answers(payload.answers)
    marker = request.progress
    phase = payload.phase.value if payload.phase else request.current_phase

    changed = (
        _answer_key(request.answers) != _answer_key(answers)
        or marker is None
        or marker.current_question_index != payload.current_question_index
        or phase != request.current_phase
    )
    advance_version(db, request, changed, payload.expected_version)

    replace_answers(db, request, answers)

    request.status = RequestStatus.IN_PROGRESS.value
    request.current_phase = phase
    request.updated_at = datetime.utcnow()

    if marker is None:
        marker = QuestionnaireProgress(request_id=request.id)
        request.progress = marker
    marker.current_question_index = payload.current_question_index
    marker.total_answers = len(answers)
    marker.saved_at = datetime.utcnow()
    db.flush()

    logger.info(
        "Saved progress for %s: index=%d answers=%d version=%d",
        request.id, payload.current_question_index, len(answers), request.version,
    )
    return SaveProgressResult(
        current_question_index=payload.current_question_index,
        answers_count=len(answers),
        version=request.version,
    )


def parse_legacy_marker(raw: Optional[str]) -> Optional[ProgressMarker]:
    """
    Read a progress marker stored as JSON text in `final_draft`.

    Returns None for anything that is not such a marker, including real
    letter text.
    """
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    index = data.get("currentQuestionIndex")
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        return None

    saved_at = None
    if isinstance(data.get("savedAt"), str):
        try:
            saved_at = datetime.fromisoformat(data["savedAt"].replace("Z", "+00:00"))
        except ValueError:
            saved_at = None

    total = data.get("totalAnswers")
    return ProgressMarker(
        current_question_index=index,
        saved_at=saved_at,
        total_answers=total if isinstance(total, int) and not isinstance(total, bool) else None,
    )


def read_progress_marker(request: RecommendationRequest) -> Optional[ProgressMarker]:
    if request.progress is not None:
        return ProgressMarker(
            current_question_index=max(request.progress.current_question_index, 0),
            saved_at=request.progress.saved_at,
            total_answers=request.progress.total_answers,
        )
    return parse_legacy_marker(request.final_draft)


def resume_progress(request: RecommendationRequest, question_count: Optional[int] = None) -> ProgressSnapshot:
    """
    Answers and index to resume from.

    Never raises: a missing or unreadable marker means starting over with
    no answers. With `question_count`, the index is clamped to the last
    question.
    """
    marker = read_progress_marker(request)
    if marker is None:
        return ProgressSnapshot()

    index = marker.current_question_index
    if question_count:
        index = min(index, question_count - 1)

    return ProgressSnapshot(
        answers=[
            AnswerItem(question_id=a.question_id, response=a.response, notes=a.notes)
            for a in request.answers
        ],
        current_question_index=index,
    )
