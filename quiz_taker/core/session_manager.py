"""Registry of live quiz sessions shared by the API endpoints."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from quiz_taker.constants.quiz_constants import FINISHED_SESSION_RETENTION_SECONDS, TICK_INTERVAL_SECONDS
from quiz_taker.core.errors import SessionNotFound
from quiz_taker.core.models import Quiz
from quiz_taker.core.services.explanation_client import ExplanationService
from quiz_taker.core.services.quiz_session import QuizSession
from quiz_taker.core.services.quiz_store import QuizStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Facade over the quiz store and the per-taker session state machines.

    All calls are expected on one event loop, so sessions need no locking.
    """

    def __init__(
        self,
        store: QuizStore,
        explanation_service: ExplanationService,
        tick_interval_seconds: float = TICK_INTERVAL_SECONDS,
        finished_retention_seconds: float = FINISHED_SESSION_RETENTION_SECONDS,
    ) -> None:
        self._store = store
        self._explanation_service = explanation_service
        self._tick_interval_seconds = tick_interval_seconds
        self._finished_retention_seconds = finished_retention_seconds
        self._sessions: dict[str, QuizSession] = {}

    # --- Quiz store delegation ---

    async def get_quiz(self, quiz_id: str) -> Quiz:
        return await self._store.fetch_quiz(quiz_id)

    async def create_quiz(self, quiz: Quiz) -> Quiz:
        return await self._store.save_quiz(quiz)

    # --- Session lifecycle ---

    async def open_session(self, quiz_id: str, user_id: str) -> str:
        """Load the quiz and register a new session; raises QuizNotFound."""
        self.prune_finished_sessions()
        quiz = await self._store.fetch_quiz(quiz_id)
        session = QuizSession(
            quiz=quiz,
            user_id=user_id,
            store=self._store,
            explanation_service=self._explanation_service,
            tick_interval_seconds=self._tick_interval_seconds,
        )
        session_id = uuid4().hex
        self._sessions[session_id] = session
        logger.info("Opened session %s for user %s on quiz %s", session_id, user_id, quiz_id)
        return session_id

    def get_session(self, session_id: str) -> QuizSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.close()
        logger.info("Closed session %s", session_id)

    def get_session_count(self) -> int:
        return len(self._sessions)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def prune_finished_sessions(self, now: float | None = None) -> int:
        """Drop sessions that finished more than the retention period ago."""
        cutoff = (time.monotonic() if now is None else now) - self._finished_retention_seconds
        expired_ids = [
            session_id
            for session_id, session in self._sessions.items()
            if session.finished_at is not None and session.finished_at <= cutoff
        ]
        for session_id in expired_ids:
            self._sessions.pop(session_id).close()
        if expired_ids:
            logger.info("Pruned %d finished session(s)", len(expired_ids))
        return len(expired_ids)
