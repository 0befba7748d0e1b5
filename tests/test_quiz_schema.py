from __future__ import annotations

import pytest

from conftest import make_quiz
from quiz_taker.core.errors import QuizValidationError
from quiz_taker.core.quiz_schema import parse_quiz, parse_quiz_json, quiz_to_payload, validate_quiz


def _payload(**overrides):
    payload = {
        "_id": "65f0c0ffee",
        "title": "Angles",
        "description": "Degrees and radians.",
        "timerMode": False,
        "questions": [
            {"_id": "q1", "question": "Right angle?", "answer": ["45", "90", "180", "360"], "correctAnswerIndex": 1},
        ],
        "creator": "user-42",
    }
    payload.update(overrides)
    return payload


def test_storage_document_is_parsed():
    quiz = parse_quiz(_payload())

    assert quiz.id == "65f0c0ffee"
    assert quiz.creator_id == "user-42"
    assert quiz.time_limit_seconds is None
    assert quiz.questions[0].correct_option_text == "90"


def test_untimed_quiz_drops_time_limit():
    quiz = parse_quiz(_payload(timeLimit=30))

    assert quiz.timer_mode is False
    assert quiz.time_limit is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "   "},
        {"description": ""},
        {"questions": []},
        {"timerMode": True},
        {"timerMode": True, "timeLimit": 0},
        {"timerMode": True, "timeLimit": 181},
        {"questions": [{"question": "Q", "answer": ["a", "b", "c"], "correctAnswerIndex": 0}]},
        {"questions": [{"question": "Q", "answer": ["a", "b", "c", "d"], "correctAnswerIndex": 4}]},
        {"questions": [{"question": "Q", "answer": ["a", "b", "c", "d"], "correctAnswerIndex": "1"}]},
        {"questions": [{"question": "Q", "answer": ["a", " ", "c", "d"], "correctAnswerIndex": 0}]},
        {"questions": [{"question": "", "answer": ["a", "b", "c", "d"], "correctAnswerIndex": 0}]},
    ],
)
def test_invalid_quizzes_are_rejected(overrides):
    with pytest.raises(QuizValidationError, match="Invalid quiz"):
        parse_quiz(_payload(**overrides))


def test_json_document_errors_are_wrapped():
    with pytest.raises(QuizValidationError):
        parse_quiz_json("{not json")


def test_payload_uses_wire_names():
    quiz = make_quiz(1, timer_mode=True, time_limit=5)

    payload = quiz_to_payload(quiz)

    assert payload["_id"] == "quiz-1"
    assert payload["timerMode"] is True
    assert payload["timeLimit"] == 5
    assert payload["questions"][0] == {
        "question": "Question 1?",
        "answer": ["Option A1", "Option B1", "Option C1", "Option D1"],
        "correctAnswerIndex": 0,
    }


def test_validate_quiz_returns_equal_quiz():
    quiz = make_quiz(4, timer_mode=True, time_limit=3)

    assert validate_quiz(quiz) == quiz
