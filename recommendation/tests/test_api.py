"""
HTTP tests for authentication, ownership and the recommendation workflow.
"""

from recommendation.logic.constants import EXTRACURRICULAR_MARKER


def _save(client, headers, rec_id, **body):
    body.setdefault("currentQuestionIndex", 1)
    body.setdefault("answers", [{"questionId": "academic-1", "response": "Excellent performance with consistent top scores."}])
    return client.post(f"/recommendations/{rec_id}/save-progress", headers=headers, json=body)


def test_register_and_login(client):
    resp = client.post("/auth/register", json={
        "name": "Mr. Chen", "email": "Chen@School.edu", "password": "secret123", "institution": "North High",
    })
    assert resp.status_code == 201
    assert resp.json()["teacher"]["email"] == "chen@school.edu"
    assert "password" not in resp.json()["teacher"]

    login = client.post("/auth/login", json={"email": "chen@school.edu", "password": "secret123"})
    assert login.status_code == 200
    me = client.get("/teachers/me", headers={"Authorization": f"Bearer {login.json()['token']}"})
    assert me.json()["name"] == "Mr. Chen"


def test_duplicate_registration_is_rejected(client, register_teacher):
    register_teacher()

    resp = client.post("/auth/register", json={
        "name": "Someone", "email": "teacher@school.edu", "password": "secret123", "institution": "North High",
    })

    assert resp.status_code == 400


def test_bad_login_is_unauthorized(client, register_teacher):
    register_teacher()

    resp = client.post("/auth/login", json={"email": "teacher@school.edu", "password": "wrong-password"})

    assert resp.status_code == 401


def test_register_validation_errors_are_field_level(client):
    resp = client.post("/auth/register", json={"name": "X", "email": "nope", "password": "1", "institution": "Y"})

    assert resp.status_code == 400
    fields = {tuple(e["loc"])[-1] for e in resp.json()["errors"]}
    assert {"name", "email", "password", "institution"} <= fields


def test_missing_and_invalid_tokens(client, recommendation_id):
    assert client.get(f"/recommendations/{recommendation_id}/progress").status_code == 401
    resp = client.get(
        f"/recommendations/{recommendation_id}/progress",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert resp.status_code == 401


def test_other_teachers_request_is_not_found(client, recommendation_id, register_teacher):
    intruder = register_teacher(email="other@school.edu", name="Dr. Other")

    assert client.get(f"/recommendations/{recommendation_id}/progress", headers=intruder).status_code == 404
    assert _save(client, intruder, recommendation_id).status_code == 404
    assert client.post(f"/recommendations/{recommendation_id}/generate", headers=intruder).status_code == 404


def test_start_returns_existing_request(client, teacher_headers, create_student):
    student_id, college_id = create_student(teacher_headers)
    body = {"studentId": student_id, "collegeId": college_id}

    first = client.post("/recommendations/start", headers=teacher_headers, json=body).json()
    second = client.post("/recommendations/start", headers=teacher_headers, json=body).json()

    assert first["id"] == second["id"]
    assert first["currentPhase"] == "commitment"


def test_start_with_unknown_college(client, teacher_headers, create_student):
    student_id, _ = create_student(teacher_headers)

    resp = client.post("/recommendations/start", headers=teacher_headers,
                       json={"studentId": student_id, "collegeId": "missing"})

    assert resp.status_code == 404


def test_phase_update_validates_enum(client, teacher_headers, recommendation_id):
    url = f"/recommendations/{recommendation_id}/progress"

    assert client.put(url, headers=teacher_headers, json={"phase": "drafting"}).status_code == 400

    resp = client.put(url, headers=teacher_headers, json={"phase": "questionnaire", "status": "in-progress"})
    assert resp.status_code == 200
    assert resp.json()["currentPhase"] == "questionnaire"


def test_save_and_resume_progress(client, teacher_headers, recommendation_id):
    resp = _save(client, teacher_headers, recommendation_id, currentQuestionIndex=3, phase="questionnaire")
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Progress saved successfully",
        "currentQuestionIndex": 3,
        "answersCount": 1,
        "version": 1,
    }

    resumed = client.get(f"/recommendations/{recommendation_id}/save-progress", headers=teacher_headers).json()
    assert resumed["currentQuestionIndex"] == 3
    assert resumed["answers"][0]["questionId"] == "academic-1"
    assert resumed["progress"]["totalAnswers"] == 1
    assert resumed["recommendation"]["currentPhase"] == "questionnaire"


def test_repeated_save_is_idempotent(client, teacher_headers, recommendation_id):
    url = f"/recommendations/{recommendation_id}/save-progress"
    _save(client, teacher_headers, recommendation_id)
    before = client.get(url, headers=teacher_headers).json()

    _save(client, teacher_headers, recommendation_id)
    after = client.get(url, headers=teacher_headers).json()

    assert after["answers"] == before["answers"]
    assert after["currentQuestionIndex"] == before["currentQuestionIndex"]
    assert after["recommendation"]["version"] == before["recommendation"]["version"]


def test_save_progress_rejects_negative_index(client, teacher_headers, recommendation_id):
    assert _save(client, teacher_headers, recommendation_id, currentQuestionIndex=-1).status_code == 400


def test_stale_save_conflicts(client, teacher_headers, recommendation_id):
    assert _save(client, teacher_headers, recommendation_id, expectedVersion=0).status_code == 200

    resp = _save(client, teacher_headers, recommendation_id, currentQuestionIndex=4, expectedVersion=0)

    assert resp.status_code == 409
    assert resp.json()["currentVersion"] == 1


def test_questions_endpoint(client, teacher_headers, recommendation_id):
    data = client.get(f"/recommendations/{recommendation_id}/questions", headers=teacher_headers).json()

    assert [q["id"] for q in data["questions"]][-1] == "tech-1"
    assert data["questions"][0]["text"].startswith("How would you describe Test Student's")
    assert "academic-1" in data["missingRequired"]


def test_generate_requires_answers(client, teacher_headers, recommendation_id):
    resp = client.post(f"/recommendations/{recommendation_id}/generate", headers=teacher_headers)

    assert resp.status_code == 400


def test_generate_letters_end_to_end(client, teacher_headers, recommendation_id):
    _save(client, teacher_headers, recommendation_id)

    resp = client.post(f"/recommendations/{recommendation_id}/generate", headers=teacher_headers)

    assert resp.status_code == 200
    letters = resp.json()["letters"]
    assert [l["tone"] for l in letters] == ["formal", "warm", "enthusiastic"]
    formal = letters[0]
    assert formal["focus"] == ["academic", "character"]
    assert "Test Student" in formal["content"] and "Test U" in formal["content"]
    assert EXTRACURRICULAR_MARKER not in formal["content"]
    assert formal["wordCount"] == len(formal["content"].split())
    assert formal["createdAt"]

    progress = client.get(f"/recommendations/{recommendation_id}/progress", headers=teacher_headers).json()
    assert progress["status"] == "completed"


def test_regenerate_replaces_letters(client, teacher_headers, recommendation_id):
    _save(client, teacher_headers, recommendation_id, answers=[
        {"questionId": "leadership-1", "response": "Organized a district-wide coding workshop for forty middle schoolers."},
    ])
    url = f"/recommendations/{recommendation_id}/generate"

    first = client.post(url, headers=teacher_headers).json()["letters"]
    second = client.post(url, headers=teacher_headers).json()["letters"]

    assert len(first) == len(second) == 4
    assert [l["content"] for l in first] == [l["content"] for l in second]
    stored = client.get(f"/recommendations/{recommendation_id}/progress", headers=teacher_headers).json()
    assert [l["id"] for l in stored["generatedLetters"]] == [l["id"] for l in second]


def test_edit_letter_and_save_final_draft(client, teacher_headers, recommendation_id):
    _save(client, teacher_headers, recommendation_id)
    letter = client.post(f"/recommendations/{recommendation_id}/generate", headers=teacher_headers).json()["letters"][0]

    edited = client.patch(
        f"/recommendations/{recommendation_id}/letters/{letter['id']}",
        headers=teacher_headers,
        json={"content": "A much shorter letter."},
    )
    assert edited.status_code == 200
    assert edited.json()["wordCount"] == 4

    final = client.patch(
        f"/recommendations/{recommendation_id}",
        headers=teacher_headers,
        json={"finalDraft": "A much shorter letter.", "status": "reviewed"},
    )
    assert final.json()["recommendation"]["status"] == "reviewed"

    # letter text in finalDraft is not a progress marker
    resumed = client.get(f"/recommendations/{recommendation_id}/save-progress", headers=teacher_headers).json()
    assert resumed["currentQuestionIndex"] == 1


def test_edit_unknown_letter(client, teacher_headers, recommendation_id):
    resp = client.patch(
        f"/recommendations/{recommendation_id}/letters/nope",
        headers=teacher_headers,
        json={"content": "text"},
    )

    assert resp.status_code == 404


def test_answers_endpoint_replaces_answers(client, teacher_headers, recommendation_id):
    _save(client, teacher_headers, recommendation_id)

    resp = client.post(
        f"/recommendations/{recommendation_id}/answers",
        headers=teacher_headers,
        json={"answers": [{"questionId": "social-1", "response": "Kind to everyone."}]},
    )

    assert resp.status_code == 200
    stored = client.get(f"/recommendations/{recommendation_id}/progress", headers=teacher_headers).json()
    assert [a["questionId"] for a in stored["answers"]] == ["social-1"]


def test_list_recommendations_is_teacher_scoped(client, teacher_headers, recommendation_id, register_teacher):
    mine = client.get("/recommendations", headers=teacher_headers).json()["recommendations"]
    other = client.get("/recommendations", headers=register_teacher(email="x@school.edu")).json()["recommendations"]

    assert [r["id"] for r in mine] == [recommendation_id]
    assert other == []


def test_students_are_teacher_scoped(client, teacher_headers, create_student, register_teacher):
    student_id, _ = create_student(teacher_headers)
    intruder = register_teacher(email="x@school.edu")

    assert client.get(f"/students/{student_id}", headers=teacher_headers).status_code == 200
    assert client.get(f"/students/{student_id}", headers=intruder).status_code == 404
    assert client.get("/students", headers=intruder).json()["students"] == []


def test_seeded_catalog_is_listed(client, db):
    from seed_db import seed_colleges, seed_questions

    seed_questions(db)
    assert seed_colleges(db) == 5
    assert seed_colleges(db) == 0
    db.commit()

    questions = client.get("/questions").json()["questions"]
    liberal_arts = client.get("/colleges", params={"type": "liberal-arts"}).json()["colleges"]

    assert questions[0]["id"] == "academic-1"
    assert len(questions) == 12
    assert [c["name"] for c in liberal_arts] == ["Harvard University", "Williams College"]


def test_answer_replacement_invalidates_older_versions(client, teacher_headers, recommendation_id):
    assert _save(client, teacher_headers, recommendation_id, expectedVersion=0).json()["version"] == 1

    replaced = client.post(
        f"/recommendations/{recommendation_id}/answers",
        headers=teacher_headers,
        json={"answers": [{"questionId": "social-1", "response": "Kind to everyone."}]},
    )
    assert replaced.json()["version"] == 2

    stale = _save(client, teacher_headers, recommendation_id, expectedVersion=1)
    assert stale.status_code == 409
    assert stale.json()["currentVersion"] == 2

    stored = client.get(f"/recommendations/{recommendation_id}/save-progress", headers=teacher_headers).json()
    assert [a["questionId"] for a in stored["answers"]] == ["social-1"]
    assert stored["progress"]["totalAnswers"] == 1


def test_phase_update_honours_expected_version(client, teacher_headers, recommendation_id):
    url = f"/recommendations/{recommendation_id}/progress"

    moved = client.put(url, headers=teacher_headers, json={"phase": "questionnaire", "expectedVersion": 0})
    assert moved.json()["version"] == 1

    stale = client.put(url, headers=teacher_headers, json={"phase": "review", "expectedVersion": 0})
    assert stale.status_code == 409
    assert client.get(url, headers=teacher_headers).json()["currentPhase"] == "questionnaire"


def test_overlong_question_id_is_a_validation_error(client, teacher_headers, recommendation_id):
    resp = _save(client, teacher_headers, recommendation_id, answers=[{"questionId": "q" * 65, "response": "text"}])

    assert resp.status_code == 400
    assert tuple(resp.json()["errors"][0]["loc"])[-1] == "questionId"


def test_generated_letter_ids_carry_the_tone(client, teacher_headers, recommendation_id):
    _save(client, teacher_headers, recommendation_id)

    letters = client.post(f"/recommendations/{recommendation_id}/generate", headers=teacher_headers).json()["letters"]

    assert [l["id"].split("-", 1)[0] for l in letters] == ["formal", "warm", "enthusiastic"]
