"""Storage collaborator for quizzes and performance records."""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import uuid4

from quiz_taker.core.errors import QuizNotFound
from quiz_taker.core.models import PerformanceRecord, Quiz
from quiz_taker.core.quiz_schema import validate_quiz


class QuizStore(Protocol):
    """Data-access interface consumed by the session engine."""

    async def fetch_quiz(self, quiz_id: str) -> Quiz: ...

    async def save_quiz(self, quiz: Quiz) -> Quiz: ...

    async def save_performance(self, record: PerformanceRecord) -> None: ...


class InMemoryQuizStore:
    """Keeps quizzes and performance records for the lifetime of the process."""

    def __init__(self) -> None:
        self._quizzes: dict[str, Quiz] = {}
        self._performance: list[PerformanceRecord] = []

    async def fetch_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)
        return quiz

    async def save_quiz(self, quiz: Quiz) -> Quiz:
        """Validate and store a new quiz, assigning it a fresh id."""
        prepared = replace(validate_quiz(quiz), id=uuid4().hex)
        self._quizzes[prepared.id] = prepared
        return prepared

    async def save_performance(self, record: PerformanceRecord) -> None:
        self._performance.append(record)

    def list_quizzes(self) -> list[Quiz]:
        return list(self._quizzes.values())

    def get_performance_records(self) -> list[PerformanceRecord]:
        return list(self._performance)
