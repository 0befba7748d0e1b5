from __future__ import annotations

import asyncio

import pytest

from quiz_taker.core.errors import ExplanationRequestFailed, PerformancePersistFailed
from quiz_taker.core.models import (
    ExplanationRequest,
    ExplanationResponse,
    PerformanceRecord,
    Question,
    Quiz,
)
from quiz_taker.core.services.quiz_store import InMemoryQuizStore


def make_quiz(
    question_count: int = 3,
    *,
    timer_mode: bool = False,
    time_limit: int | None = None,
    quiz_id: str | None = "quiz-1",
) -> Quiz:
    questions = tuple(
        Question(
            text=f"Question {number + 1}?",
            options=tuple(f"Option {letter}{number + 1}" for letter in "ABCD"),
            correct_option_index=number % 4,
        )
        for number in range(question_count)
    )
    return Quiz(
        id=quiz_id,
        title="Sample quiz",
        description="A quiz used by the tests.",
        questions=questions,
        timer_mode=timer_mode,
        time_limit=time_limit,
        creator_id="creator-1",
    )


def wrong_index(question: Question) -> int:
    return (question.correct_option_index + 1) % len(question.options)


class FakeExplanationService:
    """Answers like the real service; can fail or hold responses back."""

    def __init__(self, explanation: str = "**Because** it is right.") -> None:
        self.explanation = explanation
        self.requests: list[ExplanationRequest] = []
        self.fail_next = False
        self.gate: asyncio.Event | None = None

    async def explain(self, request: ExplanationRequest) -> ExplanationResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise ExplanationRequestFailed("service down")
        return ExplanationResponse(
            explanation=self.explanation,
            is_correct=request.correct_answer == request.selected_answer,
        )


class FailingPerformanceStore(InMemoryQuizStore):
    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    async def save_performance(self, record: PerformanceRecord) -> None:
        self.attempts += 1
        raise PerformancePersistFailed("storage offline")


@pytest.fixture
def store() -> InMemoryQuizStore:
    return InMemoryQuizStore()


@pytest.fixture
def explanation_service() -> FakeExplanationService:
    return FakeExplanationService()
