"""State machine for one taker's attempt at a quiz."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time

from quiz_taker.constants.quiz_constants import TICK_INTERVAL_SECONDS
from quiz_taker.core.answer_evaluator import evaluate
from quiz_taker.core.errors import InvalidPhaseTransition
from quiz_taker.core.models import (
    EvaluationResult,
    ExplanationState,
    Question,
    Quiz,
    SessionPhase,
    SessionResult,
)
from quiz_taker.core.services.countdown_timer import CountdownTimer
from quiz_taker.core.services.explanation_client import ExplanationService
from quiz_taker.core.services.explanation_coordinator import ExplanationCoordinator
from quiz_taker.core.services.quiz_store import QuizStore
from quiz_taker.core.services.results_summarizer import ResultsSummarizer

logger = logging.getLogger(__name__)

# Strong references to in-flight saves; the loop only keeps weak ones.
_pending_dispatches: set[asyncio.Task[bool]] = set()


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session handed to the presentation layer."""

    phase: SessionPhase
    question_count: int
    current_question_index: int
    current_question: Question | None
    selected_option_index: int | None
    last_answer_correct: bool | None
    correct_count: int
    remaining_seconds: int | None
    explanation: ExplanationState
    result: SessionResult | None


class QuizSession:
    """Drives a quiz from the first question to the final score.

    Timed and untimed quizzes share this class; the countdown only exists
    when ``quiz.timer_mode`` is set. Operations called in the wrong phase
    raise :class:`InvalidPhaseTransition` without touching any state.
    """

    def __init__(
        self,
        quiz: Quiz,
        user_id: str,
        store: QuizStore,
        explanation_service: ExplanationService,
        tick_interval_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        if quiz.timer_mode and quiz.time_limit_seconds is None:
            raise ValueError("Timed quizzes require a time limit.")
        self._quiz = quiz
        self._user_id = user_id
        self._tick_interval_seconds = tick_interval_seconds

        self._phase = SessionPhase.NOT_STARTED
        self._current_question_index: int = 0
        self._selected_option_index: int | None = None
        self._last_evaluation: EvaluationResult | None = None
        self._correct_count: int = 0

        self._timer: CountdownTimer | None = None
        self._explanations = ExplanationCoordinator(explanation_service)
        self._summarizer = ResultsSummarizer(store)
        self._dispatch_task: asyncio.Task[bool] | None = None
        self._dispatch_outcome: bool | None = None
        self._finished_at: float | None = None

    # --- Read accessors ---

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def current_question_index(self) -> int:
        return self._current_question_index

    @property
    def current_question(self) -> Question:
        return self._quiz.questions[self._current_question_index]

    @property
    def selected_option_index(self) -> int | None:
        return self._selected_option_index

    @property
    def correct_count(self) -> int:
        return self._correct_count

    @property
    def remaining_seconds(self) -> int | None:
        if not self._quiz.timer_mode:
            return None
        if self._timer is None:
            return self._quiz.time_limit_seconds
        return self._timer.remaining_seconds

    @property
    def explanation(self) -> ExplanationState:
        return self._explanations.state

    @property
    def result(self) -> SessionResult | None:
        return self._summarizer.result

    @property
    def finished_at(self) -> float | None:
        """``time.monotonic()`` reading taken when the session finished."""
        return self._finished_at

    def is_last_question(self) -> bool:
        return self._current_question_index == self._quiz.question_count - 1

    def snapshot(self) -> SessionSnapshot:
        in_question = self._phase in (SessionPhase.AWAITING_ANSWER, SessionPhase.ANSWER_REVEALED)
        return SessionSnapshot(
            phase=self._phase,
            question_count=self._quiz.question_count,
            current_question_index=self._current_question_index,
            current_question=self.current_question if in_question else None,
            selected_option_index=self._selected_option_index,
            last_answer_correct=self._last_evaluation.is_correct if self._last_evaluation else None,
            correct_count=self._correct_count,
            remaining_seconds=self.remaining_seconds,
            explanation=self._explanations.state,
            result=self._summarizer.result,
        )

    # --- Transitions ---

    def show_timer_warning(self) -> None:
        if self._phase is not SessionPhase.NOT_STARTED or not self._quiz.timer_mode:
            raise InvalidPhaseTransition("show the timer warning", self._phase)
        self._phase = SessionPhase.TIMER_WARNING

    def start(self) -> None:
        if self._phase not in (SessionPhase.NOT_STARTED, SessionPhase.TIMER_WARNING):
            raise InvalidPhaseTransition("start the quiz", self._phase)
        if self._quiz.timer_mode:
            timer = CountdownTimer(
                total_seconds=self._quiz.time_limit_seconds,
                on_expire=self.expire,
                interval_seconds=self._tick_interval_seconds,
            )
            timer.start()
            self._timer = timer
        self._current_question_index = 0
        self._selected_option_index = None
        self._last_evaluation = None
        self._phase = SessionPhase.AWAITING_ANSWER
        logger.info("User %s started quiz %s", self._user_id, self._quiz.id)

    def select_answer(self, option_index: int) -> EvaluationResult:
        if self._phase is not SessionPhase.AWAITING_ANSWER:
            raise InvalidPhaseTransition("select an answer", self._phase)
        evaluation = evaluate(self.current_question, option_index)
        self._selected_option_index = option_index
        self._last_evaluation = evaluation
        if evaluation.is_correct:
            self._correct_count += 1
        self._phase = SessionPhase.ANSWER_REVEALED
        return evaluation

    def advance(self) -> None:
        if self._phase is not SessionPhase.ANSWER_REVEALED:
            raise InvalidPhaseTransition("advance", self._phase)
        if self.is_last_question():
            self._finish(expired=False)
            return
        self._current_question_index += 1
        self._selected_option_index = None
        self._last_evaluation = None
        self._explanations.reset()
        self._phase = SessionPhase.AWAITING_ANSWER

    def expire(self) -> None:
        """Finish immediately because the time limit ran out."""
        if self._phase is SessionPhase.FINISHED:
            raise InvalidPhaseTransition("expire", self._phase)
        logger.info(
            "Time expired for user %s on quiz %s after %d correct answer(s)",
            self._user_id,
            self._quiz.id,
            self._correct_count,
        )
        self._finish(expired=True)

    async def request_explanation(self) -> ExplanationState:
        if self._phase is not SessionPhase.ANSWER_REVEALED or self._selected_option_index is None:
            raise InvalidPhaseTransition("request an explanation", self._phase)
        return await self._explanations.request(
            self._current_question_index,
            self.current_question,
            self._selected_option_index,
            expected_is_correct=self._last_evaluation.is_correct if self._last_evaluation else None,
        )

    def close(self) -> None:
        """Release the countdown and orphan pending explanations when the taker leaves."""
        self._stop_timer()
        self._explanations.reset()

    async def wait_for_dispatch(self) -> bool:
        """Wait until the performance record has been handed to storage."""
        if self._dispatch_task is not None:
            return await self._dispatch_task
        return bool(self._dispatch_outcome)

    def _finish(self, expired: bool) -> None:
        self._stop_timer()
        self._explanations.reset()
        self._phase = SessionPhase.FINISHED
        self._finished_at = time.monotonic()
        result = self._summarizer.summarize(self._quiz, self._user_id, self._correct_count, expired=expired)
        logger.info(
            "User %s finished quiz %s with %d/%d (%d%%)",
            self._user_id,
            self._quiz.id,
            result.correct_count,
            result.total_questions,
            result.score,
        )
        self._dispatch_performance()

    def _dispatch_performance(self) -> None:
        if self._dispatch_task is not None or self._dispatch_outcome is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous caller: save before returning.
            self._dispatch_outcome = asyncio.run(self._summarizer.dispatch())
            return
        task = loop.create_task(self._summarizer.dispatch(), name="quiz-performance-save")
        _pending_dispatches.add(task)
        task.add_done_callback(_pending_dispatches.discard)
        self._dispatch_task = task

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
