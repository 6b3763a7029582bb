"""
Tests for the client-side questionnaire flow: the minimum-length gate,
debounced auto-save and navigation that does not depend on persistence.
"""

import threading
from unittest import mock

import pytest

from recommendation.logic import (
    AnswerItem,
    Debouncer,
    InstitutionProfile,
    QuestionnaireSession,
    resolve_question_set,
)


@pytest.fixture
def questions():
    return resolve_question_set("Test Student", InstitutionProfile(name="Test U", type="technical"))


def test_next_is_gated_on_response_length(questions):
    saver = mock.Mock()
    session = QuestionnaireSession(questions, save=saver)

    session.type_response("x" * 10)
    assert not session.can_proceed
    assert session.go_next() is False
    assert session.index == 0

    session.type_response("x" * 11)
    assert session.can_proceed
    assert session.go_next() is True
    assert session.index == 1
    session.close()


def test_whitespace_does_not_count_towards_minimum(questions):
    session = QuestionnaireSession(questions)

    session.type_response("   short    ")

    assert not session.can_proceed
    session.close()


def test_navigation_advances_when_save_fails(questions):
    saver = mock.Mock(side_effect=ConnectionError("store unavailable"))
    session = QuestionnaireSession(questions, save=saver)

    session.type_response("A thoughtful and diligent student.")
    assert session.go_next() is True

    assert session.index == 1
    assert session.last_save_failed is True
    assert session.answers == [AnswerItem(question_id="academic-1", response="A thoughtful and diligent student.")]
    saver.assert_called_once()
    session.close()


def test_navigation_is_the_same_with_or_without_persistence(questions):
    ok = QuestionnaireSession(questions, save=mock.Mock())
    broken = QuestionnaireSession(questions, save=mock.Mock(side_effect=RuntimeError("boom")))

    for session in (ok, broken):
        for text in ("First answer is long enough.", "Second answer is long enough."):
            session.type_response(text)
            session.go_next()
        session.go_previous()
        session.close()

    assert ok.index == broken.index == 1
    assert ok.answers == broken.answers
    assert ok.response == broken.response == "Second answer is long enough."


def test_next_saves_index_of_following_question(questions):
    saver = mock.Mock()
    session = QuestionnaireSession(questions, save=saver)

    session.type_response("Consistently excellent work.")
    session.go_next()

    payload = saver.call_args.args[0]
    assert payload.current_question_index == 1
    assert payload.phase.value == "questionnaire"
    assert [a.question_id for a in payload.answers] == ["academic-1"]
    session.close()


def test_previous_restores_saved_answer(questions):
    session = QuestionnaireSession(questions, save=mock.Mock())

    session.type_response("Consistently excellent work.")
    session.type_notes("Aced the final project.")
    session.go_next()
    session.type_response("Partial thought about academics")
    session.go_previous()

    assert session.index == 0
    assert session.response == "Consistently excellent work."
    assert session.notes == "Aced the final project."
    assert [a.question_id for a in session.answers] == ["academic-1", "academic-2"]
    session.close()


def test_previous_on_first_question_does_nothing(questions):
    session = QuestionnaireSession(questions)

    assert session.go_previous() is False
    assert session.index == 0


def test_last_question_completes(questions):
    completed = []
    session = QuestionnaireSession(
        questions,
        save=mock.Mock(),
        initial_index=len(questions) - 1,
        on_complete=completed.append,
    )

    session.type_response("Built a solar-powered weather station.")
    assert session.go_next() is True

    assert session.completed
    assert completed and completed[0][-1].question_id == "tech-1"
    assert session.go_next() is False
    session.close()


def test_resume_from_saved_state(questions):
    answers = [AnswerItem(question_id="academic-2", response="Curious and precise.")]

    session = QuestionnaireSession(questions, initial_answers=answers, initial_index=1)

    assert session.current_question.id == "academic-2"
    assert session.response == "Curious and precise."
    assert session.progress_percent == pytest.approx(2 / 9 * 100)


def test_initial_index_is_clamped(questions):
    session = QuestionnaireSession(questions, initial_index=40)

    assert session.index == len(questions) - 1


def test_autosave_failure_is_swallowed_and_retryable(questions):
    saver = mock.Mock(side_effect=[OSError("offline"), None])
    session = QuestionnaireSession(questions, save=saver, autosave_delay=60)

    session.type_response("Still typing this answer")
    session.flush_autosave()

    assert session.last_save_failed is True
    assert session.retry_save() is True
    assert session.last_save_failed is False
    assert saver.call_count == 2
    session.close()


def test_autosave_skips_empty_response(questions):
    saver = mock.Mock()
    session = QuestionnaireSession(questions, save=saver, autosave_delay=60)

    session.type_response("   ")
    session.flush_autosave()

    saver.assert_not_called()


def test_autosave_fires_after_debounce(questions):
    saved = threading.Event()
    session = QuestionnaireSession(questions, save=lambda payload: saved.set(), autosave_delay=0.05)

    session.type_response("Typing")
    session.type_response("Typing more text")

    assert saved.wait(timeout=2)
    session.close()


def test_debouncer_runs_once_for_a_burst():
    calls = []
    debouncer = Debouncer(60, lambda: calls.append(1))

    for _ in range(5):
        debouncer.trigger()
    assert debouncer.pending
    debouncer.flush()

    assert calls == [1]
    assert not debouncer.pending
    debouncer.flush()
    assert calls == [1]


def test_empty_question_list_is_rejected():
    with pytest.raises(ValueError):
        QuestionnaireSession([])
