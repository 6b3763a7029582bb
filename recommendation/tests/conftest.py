import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from db import Base, engine, get_db, init_db


@pytest.fixture(autouse=True)
def fresh_database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    with get_db() as session:
        yield session


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client


def _register_teacher(client, email="teacher@school.edu", name="Ms. Rivera"):
    resp = client.post("/auth/register", json={
        "name": name,
        "email": email,
        "password": "secret123",
        "institution": "Central High",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def _create_student(client, headers, college_type="technical", extracurriculars=None):
    resp = client.post("/students", headers=headers, json={
        "name": "Test Student",
        "email": "student@school.edu",
        "grade": "12",
        "gpa": 4.0,
        "subjects": ["Math"],
        "extracurriculars": extracurriculars or [],
        "targetColleges": [{
            "name": "Test U",
            "type": college_type,
            "values": ["Innovation", "Collaboration", "Rigor"],
            "characteristics": ["Hands-on"],
        }],
    })
    assert resp.status_code == 201, resp.text
    student = resp.json()["student"]
    return student["id"], student["targetColleges"][0]["id"]


@pytest.fixture
def teacher_headers(client):
    return _register_teacher(client)


@pytest.fixture
def recommendation_id(client, teacher_headers):
    student_id, college_id = _create_student(client, teacher_headers)
    resp = client.post(
        "/recommendations/start",
        headers=teacher_headers,
        json={"studentId": student_id, "collegeId": college_id},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


@pytest.fixture
def register_teacher(client):
    return lambda **kwargs: _register_teacher(client, **kwargs)


@pytest.fixture
def create_student(client):
    return lambda headers, **kwargs: _create_student(client, headers, **kwargs)
