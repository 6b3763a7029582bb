"""
Student API Routes

Teacher-scoped student records and their target colleges, plus the
student-side account: registration, login and profile updates.
Colleges are shared by name: creating a student reuses an existing
college row with the same name.
"""

import logging
from typing import Any, Dict, List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import EmailStr, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from db import get_db
from models.models import College, Student, TargetCollege
from models.schemas_user import AuthStudent, AuthTeacher, StudentAuthResponse, StudentLogin, StudentRegister
from recommendation.logic.contracts import CamelModel
from utils.auth_utils import auth_student, auth_teacher, create_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["students"])
auth_router = APIRouter(prefix="/auth/student", tags=["auth"])

CollegeType = Literal["liberal-arts", "research", "technical", "business", "other"]

# Colleges first named by a registering student get these until a teacher edits them
DEFAULT_COLLEGE_VALUES: Dict[str, List[str]] = {
    "liberal-arts": ["Critical thinking", "Intellectual curiosity", "Well-rounded education"],
    "research": ["Innovation", "Research excellence", "Scientific inquiry"],
    "technical": ["Technical excellence", "Problem-solving", "Innovation"],
    "business": ["Leadership", "Entrepreneurship", "Strategic thinking"],
    "other": ["Excellence", "Integrity", "Growth mindset"],
}

DEFAULT_COLLEGE_CHARACTERISTICS: Dict[str, List[str]] = {
    "liberal-arts": ["Intellectual curiosity", "Critical thinking", "Cultural awareness"],
    "research": ["Research aptitude", "Analytical skills", "Innovation mindset"],
    "technical": ["Technical skills", "Problem-solving", "Mathematical thinking"],
    "business": ["Leadership potential", "Communication skills", "Strategic mindset"],
    "other": ["Academic excellence", "Character", "Potential for growth"],
}


class TargetCollegeIn(CamelModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    type: CollegeType
    values: List[str] = Field(default_factory=list)
    characteristics: List[str] = Field(default_factory=list)


class StudentCreate(CamelModel):
    name: str = Field(min_length=2)
    email: EmailStr
    grade: str = Field(min_length=1)
    gpa: Optional[float] = Field(default=None, ge=0, le=5)
    subjects: List[str] = Field(min_length=1)
    extracurriculars: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    target_colleges: List[TargetCollegeIn] = Field(min_length=1)


class StudentUpdate(CamelModel):
    """Partial update; omitted fields keep their stored value."""
    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = None
    grade: Optional[str] = Field(default=None, min_length=1)
    gpa: Optional[float] = Field(default=None, ge=0, le=5)
    subjects: Optional[List[str]] = Field(default=None, min_length=1)
    extracurriculars: Optional[List[str]] = None
    bio: Optional[str] = None
    target_colleges: Optional[List[TargetCollegeIn]] = Field(default=None, min_length=1)


class StudentProfileUpdate(CamelModel):
    bio: Optional[str] = None
    supplementary: Optional[str] = None


def serialize_college(college: College) -> Dict[str, Any]:
    return {
        "id": college.id,
        "name": college.name,
        "type": college.type,
        "values": list(college.values or []),
        "characteristics": list(college.characteristics or []),
    }


def serialize_student(student: Student) -> Dict[str, Any]:
    return {
        "id": student.id,
        "name": student.name,
        "email": student.email,
        "institution": student.institution,
        "grade": student.grade,
        "gpa": student.gpa,
        "subjects": list(student.subjects or []),
        "extracurriculars": list(student.extracurriculars or []),
        "bio": student.bio,
        "supplementary": student.supplementary,
        "isStudentAccount": bool(student.is_student_account),
        "teacherId": student.teacher_id,
        "targetColleges": [serialize_college(c) for c in student.colleges],
        "createdAt": student.created_at.isoformat() if student.created_at else None,
    }


def find_or_create_college(db: Session, name: str, type: str, values=None, characteristics=None) -> College:
    college = db.execute(select(College).where(College.name == name)).scalar_one_or_none()
    if college is None:
        college = College(
            name=name,
            type=type,
            values=values if values is not None else DEFAULT_COLLEGE_VALUES.get(type, DEFAULT_COLLEGE_VALUES["other"]),
            characteristics=(
                characteristics if characteristics is not None
                else DEFAULT_COLLEGE_CHARACTERISTICS.get(type, DEFAULT_COLLEGE_CHARACTERISTICS["other"])
            ),
        )
        db.add(college)
        # the session does not autoflush; later lookups by name must see this row
        db.flush()
    return college


def set_target_colleges(db: Session, student: Student, colleges: List[College]) -> None:
    student.target_colleges.clear()
    # old link rows must be gone before the same (student, college) pairs come back
    db.flush()
    seen = set()
    for college in colleges:
        if college.id in seen:
            continue
        seen.add(college.id)
        student.target_colleges.append(TargetCollege(college=college))


def _get_owned_student(db: Session, student_id: str, teacher: AuthTeacher) -> Student:
    student = db.execute(
        select(Student).where(Student.id == student_id, Student.teacher_id == teacher.id)
    ).scalar_one_or_none()
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


def _student_token(student: Student) -> str:
    return create_token(
        str(student.id),
        claims={
            "email": student.email,
            "name": student.name,
            "institution": student.institution or "",
            "user_type": "student",
        },
    )


# =============================================================================
# TEACHER-SIDE STUDENT RECORDS
# =============================================================================

@router.get("", summary="List the teacher's students")
def list_students(teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    with db_session as db:
        students = db.execute(
            select(Student).where(Student.teacher_id == teacher.id).order_by(Student.created_at.desc())
        ).scalars().all()
        return {"students": [serialize_student(s) for s in students]}


@router.put("/profile", summary="Update the signed-in student's bio and supplementary info")
def update_profile(
    payload: StudentProfileUpdate,
    current: AuthStudent = Depends(auth_student),
    db_session=Depends(get_db),
):
    with db_session as db:
        student = db.get(Student, current.id)
        if student is None:
            raise HTTPException(status_code=404, detail="Student not found")
        if payload.bio is not None:
            student.bio = payload.bio
        if payload.supplementary is not None:
            student.supplementary = payload.supplementary
        db.flush()
        return {"message": "Profile updated successfully", "student": serialize_student(student)}


@router.get("/{student_id}", summary="Get one of the teacher's students")
def get_student(student_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    with db_session as db:
        return serialize_student(_get_owned_student(db, student_id, teacher))


@router.post("", status_code=201, summary="Create a student with target colleges")
def create_student(payload: StudentCreate, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    try:
        with db_session as db:
            student = Student(
                teacher_id=teacher.id,
                name=payload.name,
                email=payload.email.lower(),
                grade=payload.grade,
                gpa=payload.gpa,
                subjects=payload.subjects,
                extracurriculars=payload.extracurriculars,
                bio=payload.bio,
            )
            db.add(student)
            set_target_colleges(db, student, [
                find_or_create_college(db, t.name, t.type, t.values, t.characteristics)
                for t in payload.target_colleges
            ])
            db.flush()
            logger.info(f"Created student {student.id} for teacher {teacher.id}")
            return {"message": "Student created successfully", "student": serialize_student(student)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Create student error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@router.put("/{student_id}", summary="Update one of the teacher's students")
def update_student(
    student_id: str,
    payload: StudentUpdate,
    teacher: AuthTeacher = Depends(auth_teacher),
    db_session=Depends(get_db),
):
    """
    Apply the given fields. A `targetColleges` list replaces the student's
    targets: entries with an `id` edit that college, others are found by
    name or created.
    """
    try:
        with db_session as db:
            student = _get_owned_student(db, student_id, teacher)
            changes = payload.model_dump(exclude_unset=True, exclude={"target_colleges"})
            if "email" in changes and changes["email"]:
                changes["email"] = changes["email"].lower()
            for field, value in changes.items():
                if value is None and field != "gpa":
                    continue
                setattr(student, field, value)

            if payload.target_colleges is not None:
                colleges = []
                for target in payload.target_colleges:
                    college = db.get(College, target.id) if target.id else None
                    if college is not None:
                        college.name = target.name
                        college.type = target.type
                        college.values = target.values
                        college.characteristics = target.characteristics
                    else:
                        college = find_or_create_college(db, target.name, target.type, target.values, target.characteristics)
                    colleges.append(college)
                set_target_colleges(db, student, colleges)

            db.flush()
            logger.info(f"Updated student {student.id}")
            return {"message": "Student updated successfully", "student": serialize_student(student)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Update student error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@router.delete("/{student_id}", summary="Delete one of the teacher's students")
def delete_student(student_id: str, teacher: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    """Deletes the student with its recommendation requests, answers and letters."""
    try:
        with db_session as db:
            student = _get_owned_student(db, student_id, teacher)
            db.delete(student)
            db.flush()
            logger.info(f"Deleted student {student_id} for teacher {teacher.id}")
            return {"message": "Student deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete student error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# =============================================================================
# STUDENT ACCOUNTS
# =============================================================================

@auth_router.post("/register", response_model=StudentAuthResponse, status_code=201, summary="Register a student account")
def register_student(payload: StudentRegister, db_session=Depends(get_db)):
    with db_session as db:
        email = payload.email.lower()
        if db.execute(select(Student).where(Student.email == email)).scalars().first():
            raise HTTPException(status_code=400, detail="A student with this email already exists")

        student = Student(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
            is_student_account=True,
            institution=payload.institution,
            grade=payload.grade,
            gpa=payload.gpa,
            subjects=payload.subjects,
            extracurriculars=payload.extracurriculars,
        )
        db.add(student)
        set_target_colleges(db, student, [
            find_or_create_college(db, t.name, t.type) for t in payload.target_colleges
        ])
        db.flush()
        logger.info(f"Registered student account {student.id}")
        return StudentAuthResponse(
            message="Student account created successfully",
            student=serialize_student(student),
            token=_student_token(student),
        )


@auth_router.post("/login", response_model=StudentAuthResponse, summary="Student login")
def login_student(payload: StudentLogin, db_session=Depends(get_db)):
    with db_session as db:
        student = db.execute(
            select(Student)
            .where(Student.email == payload.email.lower())
            .order_by(Student.is_student_account.desc())
        ).scalars().first()
        if student is None:
            logger.warning(f"Failed student login for {payload.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")
        if not student.password_hash:
            raise HTTPException(
                status_code=401,
                detail="This account was created by a teacher. Please create a student account instead.",
            )
        if not verify_password(payload.password, student.password_hash):
            logger.warning(f"Failed student login for {payload.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        data = serialize_student(student)
        data["teacherRequests"] = [
            {"id": r.id, "teacherId": r.teacher_id, "status": r.status} for r in student.teacher_requests
        ]
        return StudentAuthResponse(message="Login successful", student=data, token=_student_token(student))
