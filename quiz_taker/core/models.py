"""Domain models for the quiz-taking engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class Question:
    """Single-choice question with exactly four options."""

    text: str
    options: tuple[str, ...]
    correct_option_index: int

    @property
    def correct_option_text(self) -> str:
        return self.options[self.correct_option_index]


@dataclass(frozen=True, slots=True)
class Quiz:
    """Authored quiz. Immutable once it leaves the authoring boundary."""

    id: str | None
    title: str
    description: str
    questions: tuple[Question, ...]
    timer_mode: bool = False
    time_limit: int | None = None  # minutes, only meaningful in timer mode
    creator_id: str | None = None

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def time_limit_seconds(self) -> int | None:
        if not self.timer_mode or self.time_limit is None:
            return None
        return self.time_limit * 60


class SessionPhase(Enum):
    """Discrete states of a quiz-taking session."""

    NOT_STARTED = "not_started"
    TIMER_WARNING = "timer_warning"
    AWAITING_ANSWER = "awaiting_answer"
    ANSWER_REVEALED = "answer_revealed"
    FINISHED = "finished"


class ExplanationStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ExplanationState:
    """Explanation progress for the currently revealed question."""

    status: ExplanationStatus = ExplanationStatus.IDLE
    text: str | None = None
    error: str | None = None
    service_is_correct: bool | None = None


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    is_correct: bool


@dataclass(frozen=True, slots=True)
class ExplanationRequest:
    """Payload sent to the explanation service."""

    question: str | None
    options: tuple[str, ...] | None
    correct_answer: str | None
    selected_answer: str | None

    @classmethod
    def for_question(cls, question: Question, selected_index: int) -> "ExplanationRequest":
        return cls(
            question=question.text,
            options=question.options,
            correct_answer=question.correct_option_text,
            selected_answer=question.options[selected_index],
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options or ()),
            "correctAnswer": self.correct_answer,
            "selectedAnswer": self.selected_answer,
        }


@dataclass(frozen=True, slots=True)
class ExplanationResponse:
    explanation: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class PerformanceRecord:
    """Outcome of a finished session, written once to storage."""

    user_id: str
    quiz_id: str | None
    quiz_title: str
    score: int

    def to_payload(self) -> dict[str, object]:
        return {
            "userId": self.user_id,
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "score": self.score,
        }


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Final score shown to the taker once the session is finished."""

    correct_count: int
    total_questions: int
    score: int
    expired: bool
    record: PerformanceRecord
