from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging
import os

from db import get_db, init_db
from models.models import College, Question
from models.models_user import Teacher
from models.schemas_user import TeacherRegister, TeacherLogin, TeacherOut, AuthResponse, AuthTeacher
from utils.crud_user import get_teacher_by_email, create_teacher
from utils.auth_utils import hash_password, verify_password, create_token, auth_teacher
from recommendation.routes import router as recommendation_router
from student_routes import router as student_router, auth_router as student_auth_router
from teacher_request_routes import router as teacher_request_router, inbox_router as teacher_inbox_router
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)
logger.info("App starting")

app = FastAPI(title="Recommendation Letter Portal", version="1.0.0")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()

app.include_router(recommendation_router)
app.include_router(student_router)
app.include_router(student_auth_router)
app.include_router(teacher_request_router)
app.include_router(teacher_inbox_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _token_for(teacher: Teacher) -> str:
    return create_token(
        str(teacher.id),
        claims={
            "email": teacher.email,
            "name": teacher.name,
            "institution": teacher.institution,
            "user_type": "teacher",
        },
    )


@app.post("/auth/register", response_model=AuthResponse, status_code=201, tags=["auth"], summary="Register a teacher")
def register(payload: TeacherRegister, db_session=Depends(get_db)):
    db: Session
    with db_session as db:
        if get_teacher_by_email(db, payload.email):
            raise HTTPException(status_code=400, detail="A teacher with this email already exists")
        teacher = create_teacher(
            db,
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            institution=payload.institution,
            subject=payload.subject,
            experience=payload.experience,
        )
        logger.info(f"Registered teacher {teacher.id}")
        return AuthResponse(
            message="Teacher registered successfully",
            teacher=TeacherOut.model_validate(teacher),
            token=_token_for(teacher),
        )


@app.post("/auth/login", response_model=AuthResponse, tags=["auth"], summary="Login")
def login(payload: TeacherLogin, db_session=Depends(get_db)):
    db: Session
    with db_session as db:
        teacher = get_teacher_by_email(db, payload.email)
        if not teacher or not verify_password(payload.password, teacher.password_hash):
            logger.warning(f"Failed login for {payload.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")
        return AuthResponse(
            message="Login successful",
            teacher=TeacherOut.model_validate(teacher),
            token=_token_for(teacher),
        )


@app.get("/teachers/me", response_model=TeacherOut, tags=["auth"], summary="Current teacher")
def me(current: AuthTeacher = Depends(auth_teacher), db_session=Depends(get_db)):
    with db_session as db:
        teacher = db.get(Teacher, current.id)
        if not teacher:
            raise HTTPException(status_code=404, detail="Teacher not found")
        return TeacherOut.model_validate(teacher)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}


@app.get("/colleges", tags=["colleges"], summary="List colleges")
def list_colleges(type: str | None = None, db_session=Depends(get_db)):
    with db_session as db:
        query = select(College).order_by(College.name)
        if type:
            query = query.where(College.type == type)
        return {
            "colleges": [
                {
                    "id": c.id,
                    "name": c.name,
                    "type": c.type,
                    "values": list(c.values or []),
                    "characteristics": list(c.characteristics or []),
                }
                for c in db.execute(query).scalars()
            ]
        }


@app.get("/questions", tags=["questions"], summary="List the seeded question catalog")
def list_questions(db_session=Depends(get_db)):
    with db_session as db:
        return {
            "questions": [
                {
                    "id": q.id,
                    "text": q.text,
                    "category": q.category,
                    "required": q.required,
                    "followUp": q.follow_up,
                }
                for q in db.execute(select(Question).order_by(Question.position)).scalars()
            ]
        }
