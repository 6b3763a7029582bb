import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime
from db import Base

class Teacher(Base):
    __tablename__ = "teachers"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    institution = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=True)
    experience = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
