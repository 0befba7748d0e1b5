from __future__ import annotations

import pytest

from conftest import FailingPerformanceStore, make_quiz
from quiz_taker.core.services.results_summarizer import ResultsSummarizer, compute_score


@pytest.mark.parametrize(
    ("correct", "total", "expected"),
    [
        (2, 3, 67),
        (1, 3, 33),
        (1, 5, 20),
        (0, 4, 0),
        (4, 4, 100),
        (1, 8, 13),
        (1, 200, 1),
    ],
)
def test_compute_score_rounds_half_up(correct, total, expected):
    assert compute_score(correct, total) == expected


@pytest.mark.parametrize(("correct", "total"), [(0, 0), (-1, 3), (4, 3)])
def test_compute_score_rejects_impossible_counts(correct, total):
    with pytest.raises(ValueError):
        compute_score(correct, total)


def test_summarize_builds_record_once(store):
    summarizer = ResultsSummarizer(store)
    quiz = make_quiz(3)

    first = summarizer.summarize(quiz, "user-7", 2)
    second = summarizer.summarize(quiz, "user-7", 3, expired=True)

    assert second is first
    assert first.score == 67
    assert first.expired is False
    assert first.record.quiz_title == quiz.title
    assert first.record.to_payload() == {
        "userId": "user-7",
        "quizId": "quiz-1",
        "quizTitle": "Sample quiz",
        "score": 67,
    }


@pytest.mark.asyncio
async def test_dispatch_saves_exactly_once(store):
    summarizer = ResultsSummarizer(store)
    summarizer.summarize(make_quiz(5), "user-1", 1)

    assert await summarizer.dispatch() is True
    assert await summarizer.dispatch() is False
    assert [record.score for record in store.get_performance_records()] == [20]


@pytest.mark.asyncio
async def test_dispatch_before_summary_does_nothing(store):
    summarizer = ResultsSummarizer(store)

    assert await summarizer.dispatch() is False
    assert store.get_performance_records() == []


@pytest.mark.asyncio
async def test_dispatch_failure_is_logged_not_raised(caplog):
    failing_store = FailingPerformanceStore()
    summarizer = ResultsSummarizer(failing_store)
    result = summarizer.summarize(make_quiz(2), "user-1", 2)

    assert await summarizer.dispatch() is False
    assert await summarizer.dispatch() is False

    assert failing_store.attempts == 1
    assert result.score == 100
    assert "Could not save performance" in caplog.text


@pytest.mark.asyncio
async def test_dispatch_logs_unexpected_storage_errors(store, caplog, monkeypatch):
    async def explode(record):
        raise RuntimeError("driver crashed")

    monkeypatch.setattr(store, "save_performance", explode)
    summarizer = ResultsSummarizer(store)
    summarizer.summarize(make_quiz(1), "user-1", 1)

    assert await summarizer.dispatch() is False
    assert "raised unexpectedly" in caplog.text
