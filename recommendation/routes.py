"""
Recommendation API Routes

Exposes the recommendation workflow: starting a request, saving and
resuming questionnaire progress, generating letters and reviewing them.
Every endpoint is scoped to the teacher identified by the bearer token;
requests owned by another teacher answer 404.
"""

import logging
from typing import Optional, List, Dict, Any
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from db import get_db
from models.models import College, GeneratedLetter, RecommendationRequest, Student
from models.schemas_user import AuthTeacher
from utils.auth_utils import auth_teacher
from .logic.constants import Phase, RequestStatus
from .logic.contracts import AnswerItem, CamelModel, SaveProgressPayload
from .logic.errors import NoAnswersError, StaleProgressError
from .logic.progress import (
    advance_version,
    read_progress_marker,
    resume_progress,
    save_answer_set,
    save_progress,
    update_phase,
)
from .logic.questions import missing_required, resolve_question_set
from .logic.runner import edit_letter, institution_profile_from, run_generation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class StartRecommendationBody(CamelModel):
    student_id: str = Field(min_length=1)
    college_id: str = Field(min_length=1)


class UpdateProgressBody(CamelModel):
    phase: Phase
    status: Optional[RequestStatus] = None
    expected_version: Optional[int] = Field(default=None, ge=0)


class SaveAnswersBody(CamelModel):
    answers: List[AnswerItem]
    expected_version: Optional[int] = Field(default=None, ge=0)


class UpdateRecommendationBody(CamelModel):
    final_draft: Optional[str] = None
    status: Optional[RequestStatus] = None


class EditLetterBody(CamelModel):
    content: str = Field(min_length=1)


# =============================================================================
# HELPERS
# =============================================================================

def _internal_error(action: str) -> JSONResponse:
    logger.exception(f"Error {action}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _stale_response(error: StaleProgressError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(error), "currentVersion": error.current_version},
    )


def _get_owned_request(db: Session, request_id: str, teacher: AuthTeacher) -> RecommendationRequest:
    recommendation = db.execute(
        select(RecommendationRequest).where(
            RecommendationRequest.id == request_id,
            RecommendationRequest.teacher_id == teacher.id,
        )
    ).scalar_one_or_none()
    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation request not found")
    return recommendation


def _get_owned_student(db: Session, student_id: str, teacher: AuthTeacher) -> Student:
    student = db.execute(
        select(Student).where(Student.id == student_id, Student.teacher_id == teacher.id)
    ).scalar_one_or_none()
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


def _question_set(recommendation: RecommendationRequest):
    return resolve_question_set(recommendation.student.name, institution_profile_from(recommendation.college))


def _serialize_college(college: College) -> Dict[str, Any]:
    return {
        "id": college.id,
        "name": college.name,
        "type": college.type,
        "values": list(college.values or []),
        "characteristics": list(college.characteristics or []),
    }


def _serialize_student(student: Student) -> Dict[str, Any]:
    return {
        "id": student.id,
        "name": student.name,
        "email": student.email,
        "grade": student.grade,
        "gpa": student.gpa,
        "subjects": list(student.subjects or []),
        "extracurriculars": list(student.extracurriculars or []),
    }


def _serialize_letter(letter: GeneratedLetter) -> Dict[str, Any]:
    return {
        "id": letter.id,
        "content": letter.content,
        "tone": letter.tone,
        "focus": list(letter.focus or []),
        "wordCount": letter.word_count,
        "createdAt": letter.created_at.isoformat() if letter.created_at else None,
        "updatedAt": letter.updated_at.isoformat() if letter.updated_at else None,
    }


def _serialize_recommendation(rec: RecommendationRequest, detailed: bool = True) -> Dict[str, Any]:
    data = {
        "id": rec.id,
        "studentId": rec.student_id,
        "teacherId": rec.teacher_id,
        "collegeId": rec.college_id,
        "status": rec.status,
        "currentPhase": rec.current_phase,
        "version": rec.version,
        "finalDraft": rec.final_draft,
        "createdAt": rec.created_at.isoformat() if rec.created_at else None,
        "updatedAt": rec.updated_at.isoformat() if rec.updated_at else None,
    }
    if detailed:
        data.update({
            "student": _serialize_student(rec.student),
            "college": _serialize_college(rec.college),
            "answers": [
                {"questionId": a.question_id, "response": a.response, "notes": a.notes}
                for a in rec.answers
            ],
            "generatedLetters": [_serialize_letter(letter) for letter in rec.generated_letters],
        })
    return data


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", summary="List the teacher's recommendation requests")
def list_recommendations(teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    try:
        with db_session as db:
            recommendations = db.execute(
                select(RecommendationRequest)
                .where(RecommendationRequest.teacher_id == teacher.id)
                .order_by(RecommendationRequest.created_at.desc())
            ).scalars().all()
            return {"recommendations": [_serialize_recommendation(r) for r in recommendations]}
    except HTTPException:
        raise
    except Exception:
        return _internal_error("listing recommendations")


@router.post("", status_code=201, summary="Create a recommendation request")
def create_recommendation(
    body: StartRecommendationBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            _get_owned_student(db, body.student_id, teacher)
            if db.get(College, body.college_id) is None:
                raise HTTPException(status_code=404, detail="College not found")
            recommendation = RecommendationRequest(
                student_id=body.student_id,
                teacher_id=teacher.id,
                college_id=body.college_id,
                status=RequestStatus.PENDING.value,
                current_phase=Phase.COMMITMENT.value,
            )
            db.add(recommendation)
            db.flush()
            return {
                "message": "Recommendation request created successfully",
                "recommendation": _serialize_recommendation(recommendation),
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("creating recommendation")


@router.post("/start", summary="Start or resume a recommendation request")
def start_recommendation(
    body: StartRecommendationBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    """
    Return the teacher's request for (student, college), creating it in the
    commitment phase when none exists.
    """
    try:
        with db_session as db:
            _get_owned_student(db, body.student_id, teacher)
            if db.get(College, body.college_id) is None:
                raise HTTPException(status_code=404, detail="College not found")

            existing = db.execute(
                select(RecommendationRequest).where(
                    RecommendationRequest.student_id == body.student_id,
                    RecommendationRequest.teacher_id == teacher.id,
                    RecommendationRequest.college_id == body.college_id,
                )
            ).scalars().first()
            if existing is not None:
                return _serialize_recommendation(existing)

            recommendation = RecommendationRequest(
                student_id=body.student_id,
                teacher_id=teacher.id,
                college_id=body.college_id,
                status=RequestStatus.IN_PROGRESS.value,
                current_phase=Phase.COMMITMENT.value,
            )
            db.add(recommendation)
            db.flush()
            logger.info(f"Started recommendation {recommendation.id} for student {body.student_id}")
            return _serialize_recommendation(recommendation)
    except HTTPException:
        raise
    except Exception:
        return _internal_error("starting recommendation")


@router.get("/health", summary="Recommendation workflow health check")
def health_check():
    return {"status": "ok", "engine": "letters", "version": "1.0.0"}


@router.get("/{request_id}/progress", summary="Get a recommendation request with its answers and letters")
def get_progress(request_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    try:
        with db_session as db:
            return _serialize_recommendation(_get_owned_request(db, request_id, teacher))
    except HTTPException:
        raise
    except Exception:
        return _internal_error("fetching recommendation progress")


@router.put("/{request_id}/progress", summary="Move a recommendation request to another phase")
def update_progress(
    request_id: str,
    body: UpdateProgressBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            update_phase(db, recommendation, body.phase, body.status, body.expected_version)
            return _serialize_recommendation(recommendation, detailed=False)
    except StaleProgressError as e:
        return _stale_response(e)
    except HTTPException:
        raise
    except Exception:
        return _internal_error("updating recommendation progress")


@router.post("/{request_id}/save-progress", summary="Save questionnaire answers and position")
def post_save_progress(
    request_id: str,
    body: SaveProgressPayload,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            result = save_progress(db, recommendation, body)
            return result.model_dump(by_alias=True)
    except StaleProgressError as e:
        return _stale_response(e)
    except HTTPException:
        raise
    except Exception:
        return _internal_error("saving progress")


@router.get("/{request_id}/save-progress", summary="Resume questionnaire progress")
def get_save_progress(request_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    """
    Stored request plus the resume point. An unreadable progress marker
    resumes at the first question with no answers.
    """
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            snapshot = resume_progress(recommendation, question_count=len(_question_set(recommendation)))
            marker = read_progress_marker(recommendation)
            return {
                "recommendation": _serialize_recommendation(recommendation),
                "currentQuestionIndex": snapshot.current_question_index,
                "answers": [a.model_dump(by_alias=True) for a in snapshot.answers],
                "progress": marker.model_dump(by_alias=True, mode="json") if marker else None,
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("fetching saved progress")


@router.get("/{request_id}/questions", summary="Resolve the questionnaire for a request")
def get_questions(request_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            questions = _question_set(recommendation)
            return {
                "questions": [q.model_dump(by_alias=True, mode="json") for q in questions],
                "missingRequired": missing_required(questions, [a.question_id for a in recommendation.answers]),
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("resolving questions")


@router.post("/{request_id}/answers", summary="Replace the answers of a request")
def save_answers(
    request_id: str,
    body: SaveAnswersBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            rows = save_answer_set(db, recommendation, body.answers, body.expected_version)
            return {
                "message": "Answers saved successfully",
                "version": recommendation.version,
                "answers": [
                    {"questionId": a.question_id, "response": a.response, "notes": a.notes}
                    for a in rows
                ],
            }
    except StaleProgressError as e:
        return _stale_response(e)
    except HTTPException:
        raise
    except Exception:
        return _internal_error("saving answers")


@router.post("/{request_id}/generate", summary="Generate letter variants from saved answers")
def generate(request_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    """
    Compose letters from the saved answers, replacing earlier ones.

    **Response:**
    - `letters`: 3 variants, or 4 when a leadership answer is substantial
    - `missingRequired`: required questions still unanswered (informational)
    """
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            try:
                letters = run_generation(db, recommendation)
            except NoAnswersError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {
                "message": "Recommendation letters generated successfully",
                "letters": [_serialize_letter(letter) for letter in letters],
                "missingRequired": missing_required(
                    _question_set(recommendation), [a.question_id for a in recommendation.answers]
                ),
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("generating letters")


@router.patch("/{request_id}", summary="Save the final draft or status")
def update_recommendation(
    request_id: str,
    body: UpdateRecommendationBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            changed = (
                (body.final_draft is not None and body.final_draft != recommendation.final_draft)
                or (body.status is not None and body.status.value != recommendation.status)
            )
            advance_version(db, recommendation, changed)
            if body.final_draft is not None:
                recommendation.final_draft = body.final_draft
            if body.status is not None:
                recommendation.status = body.status.value
            db.flush()
            return {
                "message": "Recommendation updated successfully",
                "recommendation": _serialize_recommendation(recommendation, detailed=False),
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("updating recommendation")


@router.patch("/{request_id}/letters/{letter_id}", summary="Replace a generated letter's text")
def update_letter(
    request_id: str,
    letter_id: str,
    body: EditLetterBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            recommendation = _get_owned_request(db, request_id, teacher)
            letter = next((l for l in recommendation.generated_letters if l.id == letter_id), None)
            if letter is None:
                raise HTTPException(status_code=404, detail="Letter not found")
            return _serialize_letter(edit_letter(db, letter, body.content))
    except HTTPException:
        raise
    except Exception:
        return _internal_error("editing letter")
