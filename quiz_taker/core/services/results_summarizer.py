"""Service computing the final score and reporting it to storage."""

from __future__ import annotations

import logging

from quiz_taker.core.errors import PerformancePersistFailed
from quiz_taker.core.models import PerformanceRecord, Quiz, SessionResult
from quiz_taker.core.services.quiz_store import QuizStore

logger = logging.getLogger(__name__)


def compute_score(correct_count: int, total_questions: int) -> int:
    """Integer percentage, rounding halves up."""
    if total_questions <= 0:
        raise ValueError("A quiz must contain at least one question.")
    if not 0 <= correct_count <= total_questions:
        raise ValueError("Correct answers must be between zero and the number of questions.")
    return (200 * correct_count + total_questions) // (2 * total_questions)


class ResultsSummarizer:
    """Builds the session result once and writes it to storage once."""

    def __init__(self, store: QuizStore) -> None:
        self._store = store
        self._result: SessionResult | None = None
        self._dispatched: bool = False

    @property
    def result(self) -> SessionResult | None:
        return self._result

    def summarize(self, quiz: Quiz, user_id: str, correct_count: int, expired: bool = False) -> SessionResult:
        if self._result is not None:
            return self._result
        score = compute_score(correct_count, quiz.question_count)
        record = PerformanceRecord(
            user_id=user_id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            score=score,
        )
        self._result = SessionResult(
            correct_count=correct_count,
            total_questions=quiz.question_count,
            score=score,
            expired=expired,
            record=record,
        )
        return self._result

    async def dispatch(self) -> bool:
        """Save the performance record; returns whether storage accepted it."""
        if self._result is None or self._dispatched:
            return False
        self._dispatched = True
        record = self._result.record
        try:
            await self._store.save_performance(record)
        except PerformancePersistFailed as exc:
            logger.error("Could not save performance for user %s on quiz %s: %s", record.user_id, record.quiz_id, exc)
            return False
        except Exception:
            logger.exception(
                "Storage raised unexpectedly saving performance for user %s on quiz %s", record.user_id, record.quiz_id
            )
            return False
        logger.info("Saved score %d%% for user %s on quiz %s", record.score, record.user_id, record.quiz_id)
        return True
