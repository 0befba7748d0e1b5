"""Quiz store backed by the REST API of the quiz storage service."""

from __future__ import annotations

import logging

import httpx

from quiz_taker.constants.network_constants import REMOTE_REQUEST_TIMEOUT_SECONDS
from quiz_taker.core.errors import (
    PerformancePersistFailed,
    QuizNotFound,
    QuizValidationError,
    StorageUnavailable,
)
from quiz_taker.core.models import PerformanceRecord, Quiz
from quiz_taker.core.quiz_schema import parse_quiz, quiz_to_payload, validate_quiz

logger = logging.getLogger(__name__)


class HttpQuizStore:
    """Talks to ``/api/quizzes`` and ``/api/performance`` on a storage service."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REMOTE_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout, transport=self._transport)

    async def fetch_quiz(self, quiz_id: str) -> Quiz:
        async with self._client() as client:
            try:
                response = await client.get(f"/api/quizzes/{quiz_id}")
            except httpx.HTTPError as exc:
                raise StorageUnavailable(f"Could not load quiz {quiz_id}: {exc}") from exc
        if response.status_code == 404:
            raise QuizNotFound(quiz_id)
        if response.is_error:
            raise StorageUnavailable(f"Storage responded with HTTP {response.status_code} for quiz {quiz_id}.")
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageUnavailable(f"Storage returned malformed JSON for quiz {quiz_id}.") from exc
        return parse_quiz(payload)

    async def save_quiz(self, quiz: Quiz) -> Quiz:
        payload = quiz_to_payload(validate_quiz(quiz))
        payload.pop("_id", None)
        async with self._client() as client:
            try:
                response = await client.post("/api/quizzes", json=payload)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise StorageUnavailable(f"Could not save quiz '{quiz.title}': {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise StorageUnavailable(f"Storage returned malformed JSON for quiz '{quiz.title}'.") from exc
        saved = parse_quiz(body)
        if saved.id is None:
            raise QuizValidationError("Storage did not assign an id to the saved quiz.")
        return saved

    async def save_performance(self, record: PerformanceRecord) -> None:
        async with self._client() as client:
            try:
                response = await client.post("/api/performance", json=record.to_payload())
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise PerformancePersistFailed(str(exc)) from exc
        logger.debug("Performance record stored for quiz %s", record.quiz_id)
