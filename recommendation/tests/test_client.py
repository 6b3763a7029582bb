from unittest.mock import MagicMock

import pytest
import requests

from recommendation.client import RecommendationsAPI
from recommendation.logic.constants import Phase
from recommendation.logic.contracts import AnswerItem, SaveProgressPayload
from recommendation.logic.questions import BASE_QUESTIONS
from recommendation.logic.session import QuestionnaireSession


def _api(payload=None):
    session = MagicMock()
    session.headers = {}
    session.request.return_value.json.return_value = payload or {}
    return RecommendationsAPI("tok", base_url="http://portal.test/", session=session, timeout=5), session


def test_token_is_sent_as_bearer():
    _, session = _api()

    assert session.headers["Authorization"] == "Bearer tok"


def test_save_progress_sends_camel_case_without_nulls():
    api, session = _api({"version": 1})
    payload = SaveProgressPayload(
        current_question_index=2,
        answers=[AnswerItem(question_id="academic-1", response="Strong student.")],
        phase=Phase.QUESTIONNAIRE,
    )

    assert api.save_progress("r1", payload) == {"version": 1}

    session.request.assert_called_once_with(
        "POST",
        "http://portal.test/recommendations/r1/save-progress",
        json={
            "currentQuestionIndex": 2,
            "answers": [{"questionId": "academic-1", "response": "Strong student."}],
            "phase": "questionnaire",
        },
        timeout=5,
    )


def test_final_draft_marks_request_reviewed():
    api, session = _api()

    api.save_final_draft("r1", "Dear committee")

    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "http://portal.test/recommendations/r1")
    assert session.request.call_args.kwargs["json"] == {"finalDraft": "Dear committee", "status": "reviewed"}


def test_http_errors_are_raised():
    api, session = _api()
    session.request.return_value.raise_for_status.side_effect = requests.HTTPError("409 Conflict")

    with pytest.raises(requests.HTTPError):
        api.get_progress("r1")


def test_saver_drives_questionnaire_against_the_app(client, teacher_headers, recommendation_id):
    token = teacher_headers["Authorization"].split()[1]
    api = RecommendationsAPI(token, base_url="", session=client)
    session = QuestionnaireSession(BASE_QUESTIONS, save=api.saver(recommendation_id), autosave_delay=60)

    session.type_response("Consistently the strongest analytical thinker in the room.")
    assert session.go_next()
    session.close()

    saved = api.get_saved_progress(recommendation_id)
    assert saved["currentQuestionIndex"] == 1
    assert saved["answers"][0]["questionId"] == "academic-1"
    assert not session.last_save_failed
