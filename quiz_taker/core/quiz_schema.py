"""Strict validation boundary for authored quizzes.

Quizzes reach the engine from files, HTTP payloads or remote storage. All of
them pass through :class:`QuizDefinition`, which either produces a fully
validated :class:`~quiz_taker.core.models.Quiz` or rejects the input. Author
text is treated as data only.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from quiz_taker.constants.quiz_constants import (
    MAX_TIME_LIMIT_MINUTES,
    MIN_TIME_LIMIT_MINUTES,
    OPTIONS_PER_QUESTION,
)
from quiz_taker.core.errors import QuizValidationError
from quiz_taker.core.models import Question, Quiz


class QuestionDefinition(BaseModel):
    """Wire form of a question: ``{question, answer[4], correctAnswerIndex}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    question: str = Field(min_length=1)
    answer: list[str] = Field(min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_answer_index: int = Field(alias="correctAnswerIndex", ge=0, le=OPTIONS_PER_QUESTION - 1, strict=True)

    @field_validator("answer")
    @classmethod
    def _options_not_blank(cls, options: list[str]) -> list[str]:
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise ValueError("Option text cannot be empty.")
        return cleaned

    def to_question(self) -> Question:
        return Question(
            text=self.question,
            options=tuple(self.answer),
            correct_option_index=self.correct_answer_index,
        )


class QuizDefinition(BaseModel):
    """Wire form of a quiz as stored and exchanged over HTTP."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    id: str | None = Field(default=None, alias="_id")
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    timer_mode: bool = Field(default=False, alias="timerMode")
    time_limit: int | None = Field(default=None, alias="timeLimit")
    questions: list[QuestionDefinition] = Field(min_length=1)
    creator_id: str | None = Field(default=None, alias="creator")

    @model_validator(mode="after")
    def _check_time_limit(self) -> "QuizDefinition":
        if not self.timer_mode:
            self.time_limit = None
            return self
        if self.time_limit is None:
            raise ValueError("A time limit is required when timer mode is enabled.")
        if not MIN_TIME_LIMIT_MINUTES <= self.time_limit <= MAX_TIME_LIMIT_MINUTES:
            raise ValueError(
                f"Time limit must be between {MIN_TIME_LIMIT_MINUTES} and {MAX_TIME_LIMIT_MINUTES} minutes."
            )
        return self

    def to_quiz(self) -> Quiz:
        return Quiz(
            id=self.id,
            title=self.title,
            description=self.description,
            questions=tuple(question.to_question() for question in self.questions),
            timer_mode=self.timer_mode,
            time_limit=self.time_limit,
            creator_id=self.creator_id,
        )


def quiz_to_payload(quiz: Quiz) -> dict[str, Any]:
    """Serialize a quiz into its camelCase wire form."""
    return {
        "_id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "timerMode": quiz.timer_mode,
        "timeLimit": quiz.time_limit,
        "creator": quiz.creator_id,
        "questions": [
            {
                "question": question.text,
                "answer": list(question.options),
                "correctAnswerIndex": question.correct_option_index,
            }
            for question in quiz.questions
        ],
    }


def parse_quiz(payload: Any) -> Quiz:
    """Validate a decoded payload and return the quiz, or raise QuizValidationError."""
    try:
        return QuizDefinition.model_validate(payload).to_quiz()
    except ValidationError as exc:
        raise QuizValidationError(_summarize_errors(exc)) from exc


def parse_quiz_json(document: str | bytes) -> Quiz:
    try:
        return QuizDefinition.model_validate_json(document).to_quiz()
    except ValidationError as exc:
        raise QuizValidationError(_summarize_errors(exc)) from exc


def validate_quiz(quiz: Quiz) -> Quiz:
    """Re-check an in-memory quiz against the wire schema and normalize it."""
    return parse_quiz(quiz_to_payload(quiz))


def _summarize_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "quiz"
        parts.append(f"{location}: {error['msg']}")
    return "Invalid quiz: " + "; ".join(parts)
