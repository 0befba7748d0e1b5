"""HTTP client for the external explanation service."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quiz_taker.constants.network_constants import (
    DEFAULT_EXPLANATION_SERVICE_URL,
    EXPLANATION_PATH,
    REMOTE_REQUEST_TIMEOUT_SECONDS,
)
from quiz_taker.constants.quiz_constants import OPTIONS_PER_QUESTION
from quiz_taker.core.errors import ExplanationBadRequest, ExplanationRequestFailed
from quiz_taker.core.models import ExplanationRequest, ExplanationResponse

logger = logging.getLogger(__name__)


class ExplanationService(Protocol):
    """Anything able to turn an answered question into an explanation."""

    async def explain(self, request: ExplanationRequest) -> ExplanationResponse: ...


class ExplanationPayload(BaseModel):
    """Response schema of the explanation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    explanation: str
    is_correct: bool = Field(alias="isCorrect")


def ensure_complete_request(request: ExplanationRequest) -> None:
    """Reject requests missing a required field before any network traffic."""
    if not request.question:
        raise ExplanationBadRequest("Question details are required: question text is missing.")
    if not request.options:
        raise ExplanationBadRequest("Question details are required: options are missing.")
    if len(request.options) != OPTIONS_PER_QUESTION:
        raise ExplanationBadRequest(f"Exactly {OPTIONS_PER_QUESTION} options are required.")
    if not request.correct_answer:
        raise ExplanationBadRequest("Question details are required: correct answer is missing.")
    if request.selected_answer is None:
        raise ExplanationBadRequest("Question details are required: selected answer is missing.")


class ExplanationClient:
    """Posts answered questions to the explanation service over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_EXPLANATION_SERVICE_URL,
        *,
        timeout: float = REMOTE_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def explain(self, request: ExplanationRequest) -> ExplanationResponse:
        ensure_complete_request(request)
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(EXPLANATION_PATH, json=request.to_payload())
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise ExplanationRequestFailed(
                    f"Explanation service responded with HTTP {exc.response.status_code}."
                ) from exc
            except httpx.HTTPError as exc:
                raise ExplanationRequestFailed(f"Explanation service unreachable: {exc}") from exc

        try:
            payload = ExplanationPayload.model_validate_json(response.content)
        except ValidationError as exc:
            raise ExplanationRequestFailed("Explanation service returned a malformed response.") from exc
        logger.debug("Received explanation (%d characters)", len(payload.explanation))
        return ExplanationResponse(explanation=payload.explanation, is_correct=payload.is_correct)
