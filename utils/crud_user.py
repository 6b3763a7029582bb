from sqlalchemy.orm import Session
from sqlalchemy import select
from models.models_user import Teacher

def get_teacher_by_email(db: Session, email: str) -> Teacher | None:
    return db.execute(select(Teacher).where(Teacher.email == email.lower())).scalar_one_or_none()

def create_teacher(db: Session, *, name: str, email: str, password_hash: str, institution: str,
                   subject: str | None = None, experience: int | None = None) -> Teacher:
    teacher = Teacher(
        name=name,
        email=email.lower(),
        password_hash=password_hash,
        institution=institution,
        subject=subject,
        experience=experience,
    )
    db.add(teacher)
    db.flush()
    return teacher
