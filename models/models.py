import uuid
from datetime import datetime
from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class College(Base):
    __tablename__ = "colleges"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), unique=True, nullable=False, index=True)
    type = Column(String(32), nullable=False, default="other")
    values = Column(JSON, nullable=False, default=list)
    characteristics = Column(JSON, nullable=False, default=list)


class TargetCollege(Base):
    __tablename__ = "target_colleges"
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    college_id = Column(String(36), ForeignKey("colleges.id", ondelete="CASCADE"), primary_key=True)
    college = relationship("College")


class Student(Base):
    """
    A student record. Teachers create records for their own students;
    students may also register an account themselves (`is_student_account`)
    and join a teacher once that teacher accepts their request.
    """
    __tablename__ = "students"
    id = Column(String(36), primary_key=True, default=_uuid)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    is_student_account = Column(Boolean, nullable=False, default=False)
    institution = Column(String(255), nullable=True)
    grade = Column(String(32), nullable=False)
    gpa = Column(Float, nullable=True)
    subjects = Column(JSON, nullable=False, default=list)
    extracurriculars = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    supplementary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    target_colleges = relationship("TargetCollege", cascade="all, delete-orphan")
    recommendation_requests = relationship(
        "RecommendationRequest", cascade="all, delete-orphan", back_populates="student"
    )
    teacher_requests = relationship("TeacherRequest", cascade="all, delete-orphan", back_populates="student")

    @property
    def colleges(self) -> list[College]:
        return [tc.college for tc in self.target_colleges]


class TeacherRequest(Base):
    """A student's request to be taken on by a teacher; one per (student, teacher)."""
    __tablename__ = "teacher_requests"
    __table_args__ = (UniqueConstraint("student_id", "teacher_id", name="uq_teacher_request_pair"),)
    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="teacher_requests")
    teacher = relationship("Teacher")


class Question(Base):
    """Seeded catalog entry; text may hold {student} and {college} placeholders."""
    __tablename__ = "questions"
    id = Column(String(64), primary_key=True)
    text = Column(Text, nullable=False)
    category = Column(String(32), nullable=False)
    required = Column(Boolean, nullable=False, default=True)
    follow_up = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)


class RecommendationRequest(Base):
    __tablename__ = "recommendation_requests"
    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    college_id = Column(String(36), ForeignKey("colleges.id"), nullable=False)
    status = Column(String(32), nullable=False, default="pending")
    current_phase = Column(String(32), nullable=False, default="commitment")
    final_draft = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="recommendation_requests")
    college = relationship("College")
    answers = relationship(
        "Answer",
        cascade="all, delete-orphan",
        order_by="Answer.position",
        back_populates="request",
    )
    generated_letters = relationship(
        "GeneratedLetter",
        cascade="all, delete-orphan",
        order_by="GeneratedLetter.position",
        back_populates="request",
    )
    progress = relationship(
        "QuestionnaireProgress",
        cascade="all, delete-orphan",
        uselist=False,
        back_populates="request",
    )


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("request_id", "question_id", name="uq_answer_request_question"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(36), ForeignKey("recommendation_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    response = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    request = relationship("RecommendationRequest", back_populates="answers")


class QuestionnaireProgress(Base):
    """Where the teacher stopped in the questionnaire; one row per request."""
    __tablename__ = "questionnaire_progress"
    request_id = Column(String(36), ForeignKey("recommendation_requests.id", ondelete="CASCADE"), primary_key=True)
    current_question_index = Column(Integer, nullable=False, default=0)
    total_answers = Column(Integer, nullable=False, default=0)
    saved_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)

    request = relationship("RecommendationRequest", back_populates="progress")


class GeneratedLetter(Base):
    __tablename__ = "generated_letters"
    id = Column(String(36), primary_key=True, default=_uuid)
    request_id = Column(String(36), ForeignKey("recommendation_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    content = Column(Text, nullable=False)
    tone = Column(String(32), nullable=False)
    focus = Column(JSON, nullable=False, default=list)
    word_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    request = relationship("RecommendationRequest", back_populates="generated_letters")
