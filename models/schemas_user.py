from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Literal

class TeacherRegister(BaseModel):
    name: constr(min_length=2)
    email: EmailStr
    password: constr(min_length=6)
    institution: constr(min_length=2)
    subject: str | None = None
    experience: int | None = Field(default=None, ge=0, le=50)

class TeacherLogin(BaseModel):
    email: EmailStr
    password: constr(min_length=1)

class TeacherOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: EmailStr
    institution: str
    subject: str | None = None
    experience: int | None = None
    created_at: datetime

class AuthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    teacher: TeacherOut
    token: str
    token_type: str = "bearer"

class AuthIdentity(BaseModel):
    """Identity carried by a decoded bearer token."""
    id: str
    email: str
    name: str | None = None
    institution: str | None = None
    user_type: Literal["teacher", "student"] = "teacher"

class AuthTeacher(AuthIdentity):
    user_type: Literal["teacher"] = "teacher"

class AuthStudent(AuthIdentity):
    user_type: Literal["student"] = "student"

class StudentTargetCollege(BaseModel):
    name: constr(min_length=1)
    type: Literal["liberal-arts", "research", "technical", "business", "other"]

class StudentRegister(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: constr(min_length=2)
    email: EmailStr
    password: constr(min_length=6)
    grade: constr(min_length=1)
    institution: constr(min_length=1)
    gpa: float | None = Field(default=None, ge=0, le=5)
    subjects: list[str] = Field(min_length=1)
    extracurriculars: list[str] = Field(default_factory=list)
    target_colleges: list[StudentTargetCollege] = Field(min_length=1)

class StudentLogin(TeacherLogin):
    pass

class StudentAuthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    student: dict
    token: str
    token_type: str = "bearer"
