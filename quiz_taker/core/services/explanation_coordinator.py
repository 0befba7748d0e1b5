"""Tracks the explanation request for the currently revealed question."""

from __future__ import annotations

import asyncio
import logging

from quiz_taker.constants.ui_constants import EXPLANATION_FAILED_MESSAGE
from quiz_taker.core.errors import ExplanationRequestFailed
from quiz_taker.core.explanation_sanitizer import sanitize_explanation
from quiz_taker.core.models import (
    ExplanationRequest,
    ExplanationState,
    ExplanationStatus,
    Question,
)
from quiz_taker.core.services.explanation_client import ExplanationService

logger = logging.getLogger(__name__)


class ExplanationCoordinator:
    """Owns the Idle/Pending/Ready/Failed lifecycle of one question's explanation."""

    def __init__(self, service: ExplanationService) -> None:
        self._service = service
        self._state = ExplanationState()
        self._generation: int = 0
        self._question_index: int | None = None

    @property
    def state(self) -> ExplanationState:
        return self._state

    def reset(self) -> None:
        """Return to Idle and orphan any response still in flight."""
        self._generation += 1
        self._question_index = None
        self._state = ExplanationState()

    async def request(
        self,
        question_index: int,
        question: Question,
        selected_index: int,
        expected_is_correct: bool | None = None,
    ) -> ExplanationState:
        if self._state.status in (ExplanationStatus.PENDING, ExplanationStatus.READY):
            return self._state

        request = ExplanationRequest.for_question(question, selected_index)
        generation = self._generation
        self._question_index = question_index
        self._state = ExplanationState(status=ExplanationStatus.PENDING)

        try:
            response = await self._service.explain(request)
        except asyncio.CancelledError:
            if not self._is_stale(generation, question_index):
                self._state = ExplanationState()
            raise
        except Exception as exc:
            if self._is_stale(generation, question_index):
                logger.info("Dropping failed explanation for question %d; question changed", question_index)
                return self._state
            if isinstance(exc, ExplanationRequestFailed):
                logger.warning("Explanation request for question %d failed: %s", question_index, exc)
            else:
                logger.exception("Explanation service raised unexpectedly for question %d", question_index)
            self._state = ExplanationState(status=ExplanationStatus.FAILED, error=EXPLANATION_FAILED_MESSAGE)
            return self._state

        if self._is_stale(generation, question_index):
            logger.info("Discarding late explanation for question %d", question_index)
            return self._state

        if expected_is_correct is not None and response.is_correct != expected_is_correct:
            logger.warning(
                "Explanation service disagrees on correctness for question %d (service=%s, session=%s)",
                question_index,
                response.is_correct,
                expected_is_correct,
            )
        self._state = ExplanationState(
            status=ExplanationStatus.READY,
            text=sanitize_explanation(response.explanation),
            service_is_correct=response.is_correct,
        )
        return self._state

    def _is_stale(self, generation: int, question_index: int) -> bool:
        return generation != self._generation or question_index != self._question_index
