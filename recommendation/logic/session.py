"""
Questionnaire Session

Client-side state for answering the questionnaire: the resolved
questions, the local answers, the current position and the draft being
typed. Persistence goes through a `save` callable that receives a
SaveProgressPayload (for example `RecommendationsAPI.save_progress`
bound to a request id).

Navigation never waits on persistence: a failed save is logged,
recorded in `last_save_failed`, and the session moves on anyway.
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence

from .constants import DEFAULT_AUTOSAVE_DEBOUNCE_SECONDS, MIN_RESPONSE_LENGTH, Phase
from .contracts import AnswerItem, Question, SaveProgressPayload, dedupe_answers

logger = logging.getLogger(__name__)

SaveFn = Callable[[SaveProgressPayload], object]


class Debouncer:
    """Runs `action` once, `delay` seconds after the last `trigger()`."""

    def __init__(self, delay: float, action: Callable[[], None]):
        self.delay = delay
        self.action = action
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Run a pending action now instead of waiting for the timer."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self.action()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.action()


def can_proceed(response: str) -> bool:
    return len(response.strip()) > MIN_RESPONSE_LENGTH


class QuestionnaireSession:
    def __init__(
        self,
        questions: Sequence[Question],
        save: Optional[SaveFn] = None,
        initial_answers: Optional[Sequence[AnswerItem]] = None,
        initial_index: int = 0,
        on_complete: Optional[Callable[[List[AnswerItem]], None]] = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DEBOUNCE_SECONDS,
    ):
        if not questions:
            raise ValueError("questionnaire has no questions")
        self.questions = list(questions)
        self.save = save
        self.on_complete = on_complete
        self.answers: List[AnswerItem] = dedupe_answers(initial_answers or [])
        self.index = min(max(initial_index, 0), len(self.questions) - 1)
        self.completed = False
        self.last_save_failed = False
        self._lock = threading.RLock()
        self._autosave = Debouncer(autosave_delay, self.autosave)
        self.response = ""
        self.notes = ""
        self._load_current()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def current_question(self) -> Question:
        return self.questions[self.index]

    @property
    def can_proceed(self) -> bool:
        return can_proceed(self.response)

    @property
    def progress_percent(self) -> float:
        return (self.index + 1) / len(self.questions) * 100

    def _load_current(self) -> None:
        existing = self._find(self.current_question.id)
        self.response = existing.response if existing else ""
        self.notes = (existing.notes or "") if existing else ""

    def _find(self, question_id: str) -> Optional[AnswerItem]:
        return next((a for a in self.answers if a.question_id == question_id), None)

    def _current_answer(self) -> AnswerItem:
        return AnswerItem(
            question_id=self.current_question.id,
            response=self.response,
            notes=self.notes or None,
        )

    def _with_current(self) -> List[AnswerItem]:
        others = [a for a in self.answers if a.question_id != self.current_question.id]
        return others + [self._current_answer()]

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def type_response(self, text: str) -> None:
        with self._lock:
            self.response = text
        self._autosave.trigger()

    def type_notes(self, text: str) -> None:
        with self._lock:
            self.notes = text
        self._autosave.trigger()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _persist(self, index: int, answers: List[AnswerItem]) -> bool:
        if self.save is None:
            return True
        payload = SaveProgressPayload(
            current_question_index=index,
            answers=answers,
            phase=Phase.QUESTIONNAIRE,
        )
        try:
            self.save(payload)
        except Exception:
            logger.exception("Failed to save questionnaire progress at question %d", index)
            self.last_save_failed = True
            return False
        self.last_save_failed = False
        return True

    def autosave(self) -> bool:
        """Debounced save of the answer being typed; failures are only logged."""
        with self._lock:
            if not self.response.strip() or self.completed:
                return False
            answers = self._with_current()
            index = self.index
        return self._persist(index, answers)

    def retry_save(self) -> bool:
        with self._lock:
            answers = self._with_current() if self.response.strip() else list(self.answers)
            index = self.index
        return self._persist(index, answers)

    def flush_autosave(self) -> None:
        self._autosave.flush()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def go_next(self) -> bool:
        """
        Commit the current answer and move forward.

        Returns False when the response is too short; otherwise advances
        (or completes on the last question) whether or not the save worked.
        """
        with self._lock:
            if not self.can_proceed or self.completed:
                return False
            self._autosave.cancel()
            self.answers = self._with_current()
            self._persist(self.index + 1, self.answers)

            if self.index < len(self.questions) - 1:
                self.index += 1
                self._load_current()
                return True

            self.completed = True
            answers = list(self.answers)

        if self.on_complete is not None:
            self.on_complete(answers)
        return True

    def go_previous(self) -> bool:
        with self._lock:
            if self.index == 0 or self.completed:
                return False
            self._autosave.cancel()
            if self.response.strip():
                self.answers = self._with_current()
            self._persist(self.index - 1, self.answers)
            self.index -= 1
            self._load_current()
            return True

    def close(self) -> None:
        self._autosave.cancel()
