"""
Teacher Request Routes

A registered student asks a teacher (by email) to take them on. The
teacher accepts or rejects; accepting assigns the student to that
teacher, after which the student shows up in the teacher's student list
and can be the subject of recommendation requests.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import EmailStr
from sqlalchemy import case, select

from db import get_db
from models.models import Student, TeacherRequest
from models.models_user import Teacher
from models.schemas_user import AuthIdentity, AuthStudent, AuthTeacher
from recommendation.logic.contracts import CamelModel
from student_routes import serialize_student
from utils.auth_utils import auth_student, auth_teacher, auth_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teacher-requests", tags=["teacher-requests"])
inbox_router = APIRouter(prefix="/teachers", tags=["teacher-requests"])

PENDING, ACCEPTED, REJECTED = "pending", "accepted", "rejected"


class CreateTeacherRequestBody(CamelModel):
    teacher_email: EmailStr
    message: Optional[str] = None


class RespondTeacherRequestBody(CamelModel):
    action: Literal["accept", "reject"]
    message: Optional[str] = None


def _serialize_teacher(teacher: Teacher) -> Dict[str, Any]:
    return {
        "id": teacher.id,
        "name": teacher.name,
        "email": teacher.email,
        "institution": teacher.institution,
        "subject": teacher.subject,
    }


def serialize_teacher_request(req: TeacherRequest) -> Dict[str, Any]:
    return {
        "id": req.id,
        "studentId": req.student_id,
        "teacherId": req.teacher_id,
        "message": req.message,
        "status": req.status,
        "createdAt": req.created_at.isoformat() if req.created_at else None,
        "updatedAt": req.updated_at.isoformat() if req.updated_at else None,
        "student": serialize_student(req.student),
        "teacher": _serialize_teacher(req.teacher),
    }


def _internal_error(action: str) -> JSONResponse:
    logger.exception(f"Error {action}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@router.get("", summary="List the signed-in student's teacher requests")
def list_my_requests(current: AuthStudent = Depends(auth_student), db_session=Depends(get_db)):
    try:
        with db_session as db:
            requests = db.execute(
                select(TeacherRequest)
                .where(TeacherRequest.student_id == current.id)
                .order_by(TeacherRequest.created_at.desc())
            ).scalars().all()
            return {"requests": [serialize_teacher_request(r) for r in requests]}
    except HTTPException:
        raise
    except Exception:
        return _internal_error("listing teacher requests")


@router.post("", status_code=201, summary="Ask a teacher to take the student on")
def create_request(
    body: CreateTeacherRequestBody,
    current: AuthStudent = Depends(auth_student),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            student = db.get(Student, current.id)
            if student is None:
                raise HTTPException(status_code=404, detail="Student not found")
            teacher = db.execute(
                select(Teacher).where(Teacher.email == body.teacher_email.lower())
            ).scalar_one_or_none()
            if teacher is None:
                raise HTTPException(status_code=404, detail="Teacher not found with this email address")

            existing = db.execute(
                select(TeacherRequest).where(
                    TeacherRequest.student_id == student.id,
                    TeacherRequest.teacher_id == teacher.id,
                )
            ).scalar_one_or_none()
            if existing is not None:
                raise HTTPException(status_code=400, detail="You have already sent a request to this teacher")

            request = TeacherRequest(student=student, teacher=teacher, message=body.message, status=PENDING)
            db.add(request)
            db.flush()
            logger.info(f"Student {student.id} requested teacher {teacher.id}")
            return {"message": "Teacher request sent successfully", "request": serialize_teacher_request(request)}
    except HTTPException:
        raise
    except Exception:
        return _internal_error("creating teacher request")


@router.get("/{request_id}", summary="Get a teacher request")
def get_request(request_id: str, current: AuthIdentity = Depends(auth_user), db_session=Depends(get_db)):
    """Visible to the requesting student and the addressed teacher only; others get 404."""
    try:
        with db_session as db:
            request = db.get(TeacherRequest, request_id)
            if request is None:
                raise HTTPException(status_code=404, detail="Teacher request not found")
            party = request.teacher_id if current.user_type == "teacher" else request.student_id
            if party != current.id:
                raise HTTPException(status_code=404, detail="Teacher request not found")
            return serialize_teacher_request(request)
    except HTTPException:
        raise
    except Exception:
        return _internal_error("fetching teacher request")


@router.put("/{request_id}", summary="Accept or reject a teacher request")
def respond_to_request(
    request_id: str,
    body: RespondTeacherRequestBody,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    try:
        with db_session as db:
            request = db.get(TeacherRequest, request_id)
            if request is None or request.teacher_id != teacher.id:
                raise HTTPException(status_code=404, detail="Teacher request not found")
            if request.status != PENDING:
                raise HTTPException(status_code=400, detail="This request has already been responded to")

            request.status = ACCEPTED if body.action == "accept" else REJECTED
            request.updated_at = datetime.utcnow()
            if request.status == ACCEPTED:
                request.student.teacher_id = teacher.id
            db.flush()
            logger.info(f"Teacher {teacher.id} {request.status} request {request.id}")
            return {
                "message": f"Request {request.status} successfully",
                "request": serialize_teacher_request(request),
            }
    except HTTPException:
        raise
    except Exception:
        return _internal_error("updating teacher request")


@inbox_router.get("/requests", summary="List requests addressed to the signed-in teacher")
def list_incoming_requests(teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    """Pending requests first, then newest first."""
    try:
        with db_session as db:
            requests = db.execute(
                select(TeacherRequest)
                .where(TeacherRequest.teacher_id == teacher.id)
                .order_by(
                    case((TeacherRequest.status == PENDING, 0), else_=1),
                    TeacherRequest.created_at.desc(),
                )
            ).scalars().all()
            return {"requests": [serialize_teacher_request(r) for r in requests]}
    except HTTPException:
        raise
    except Exception:
        return _internal_error("listing incoming teacher requests")
