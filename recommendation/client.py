"""
Recommendations HTTP Client

Thin `requests` wrapper over the recommendation endpoints, used by the
questionnaire flow to persist progress. Every call raises
`requests.HTTPError` on a non-2xx answer.
"""

import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from .logic.contracts import AnswerItem, SaveProgressPayload

load_dotenv()

DEFAULT_BASE_URL = os.getenv("PORTAL_API_URL", "http://localhost:8000")


class RecommendationsAPI:
    def __init__(self, token: str, base_url: str = DEFAULT_BASE_URL,
                 session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resp = self.session.request(method, f"{self.base_url}{path}", json=json, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def list_all(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/recommendations")["recommendations"]

    def start(self, student_id: str, college_id: str) -> Dict[str, Any]:
        return self._request("POST", "/recommendations/start", {"studentId": student_id, "collegeId": college_id})

    def get_progress(self, request_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/recommendations/{request_id}/progress")

    def update_progress(self, request_id: str, phase: str, status: Optional[str] = None) -> Dict[str, Any]:
        body = {"phase": phase}
        if status:
            body["status"] = status
        return self._request("PUT", f"/recommendations/{request_id}/progress", body)

    def save_progress(self, request_id: str, payload: SaveProgressPayload) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/recommendations/{request_id}/save-progress",
            payload.model_dump(by_alias=True, exclude_none=True, mode="json"),
        )

    def get_saved_progress(self, request_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/recommendations/{request_id}/save-progress")

    def get_questions(self, request_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/recommendations/{request_id}/questions")["questions"]

    def save_answers(self, request_id: str, answers: List[AnswerItem]) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/recommendations/{request_id}/answers",
            {"answers": [a.model_dump(by_alias=True, exclude_none=True) for a in answers]},
        )

    def generate_letters(self, request_id: str) -> List[Dict[str, Any]]:
        return self._request("POST", f"/recommendations/{request_id}/generate")["letters"]

    def save_final_draft(self, request_id: str, final_draft: str) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/recommendations/{request_id}",
            {"finalDraft": final_draft, "status": "reviewed"},
        )

    def edit_letter(self, request_id: str, letter_id: str, content: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/recommendations/{request_id}/letters/{letter_id}", {"content": content})

    def saver(self, request_id: str):
        """Persistence callable for QuestionnaireSession."""
        return lambda payload: self.save_progress(request_id, payload)
