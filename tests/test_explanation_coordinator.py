from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import FakeExplanationService, make_quiz, wrong_index
from quiz_taker.constants.ui_constants import EXPLANATION_FAILED_MESSAGE
from quiz_taker.core.models import ExplanationStatus
from quiz_taker.core.services.explanation_coordinator import ExplanationCoordinator


@pytest.fixture
def question():
    return make_quiz(2).questions[1]


@pytest.mark.asyncio
async def test_successful_request_is_sanitised(explanation_service, question):
    coordinator = ExplanationCoordinator(explanation_service)

    state = await coordinator.request(1, question, question.correct_option_index, expected_is_correct=True)

    assert state.status is ExplanationStatus.READY
    assert state.text == "Because it is right."
    assert state.service_is_correct is True
    [request] = explanation_service.requests
    assert request.question == question.text
    assert request.options == question.options
    assert request.correct_answer == question.correct_option_text
    assert request.selected_answer == question.correct_option_text


@pytest.mark.asyncio
async def test_service_correctness_matches_local_evaluation(explanation_service, question):
    coordinator = ExplanationCoordinator(explanation_service)

    state = await coordinator.request(1, question, wrong_index(question), expected_is_correct=False)

    assert state.service_is_correct is False


@pytest.mark.asyncio
async def test_disagreement_is_logged(question, caplog):
    class ContrarianService(FakeExplanationService):
        async def explain(self, request):
            response = await super().explain(request)
            return type(response)(explanation=response.explanation, is_correct=not response.is_correct)

    coordinator = ExplanationCoordinator(ContrarianService())
    with caplog.at_level(logging.WARNING):
        state = await coordinator.request(1, question, question.correct_option_index, expected_is_correct=True)

    assert state.status is ExplanationStatus.READY
    assert "disagrees on correctness" in caplog.text


@pytest.mark.asyncio
async def test_pending_request_ignores_repeats(explanation_service, question):
    explanation_service.gate = asyncio.Event()
    coordinator = ExplanationCoordinator(explanation_service)

    first = asyncio.create_task(coordinator.request(1, question, 0))
    await asyncio.sleep(0)
    repeat = await coordinator.request(1, question, 0)

    assert repeat.status is ExplanationStatus.PENDING
    explanation_service.gate.set()
    assert (await first).status is ExplanationStatus.READY
    assert len(explanation_service.requests) == 1


@pytest.mark.asyncio
async def test_ready_explanation_is_not_requested_again(explanation_service, question):
    coordinator = ExplanationCoordinator(explanation_service)
    await coordinator.request(1, question, 0)

    state = await coordinator.request(1, question, 0)

    assert state.status is ExplanationStatus.READY
    assert len(explanation_service.requests) == 1


@pytest.mark.asyncio
async def test_failure_can_be_retried(explanation_service, question):
    explanation_service.fail_next = True
    coordinator = ExplanationCoordinator(explanation_service)

    failed = await coordinator.request(1, question, 0)
    assert failed.status is ExplanationStatus.FAILED
    assert failed.error == EXPLANATION_FAILED_MESSAGE
    assert failed.text is None

    retried = await coordinator.request(1, question, 0)
    assert retried.status is ExplanationStatus.READY
    assert len(explanation_service.requests) == 2


@pytest.mark.asyncio
async def test_reset_discards_late_response(explanation_service, question):
    explanation_service.gate = asyncio.Event()
    coordinator = ExplanationCoordinator(explanation_service)

    pending = asyncio.create_task(coordinator.request(1, question, 0))
    await asyncio.sleep(0)
    coordinator.reset()
    explanation_service.gate.set()
    await pending

    assert coordinator.state.status is ExplanationStatus.IDLE
    assert coordinator.state.text is None


@pytest.mark.asyncio
async def test_reset_discards_late_failure(explanation_service, question):
    explanation_service.gate = asyncio.Event()
    explanation_service.fail_next = True
    coordinator = ExplanationCoordinator(explanation_service)

    pending = asyncio.create_task(coordinator.request(0, question, 0))
    await asyncio.sleep(0)
    coordinator.reset()
    explanation_service.gate.set()
    await pending

    assert coordinator.state.status is ExplanationStatus.IDLE
    assert coordinator.state.error is None


class BrokenService(FakeExplanationService):
    """Raises a non-client error on the first call, then answers normally."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = True

    async def explain(self, request):
        if self.broken:
            self.requests.append(request)
            self.broken = False
            raise RuntimeError("unexpected service bug")
        return await super().explain(request)


@pytest.mark.asyncio
async def test_unexpected_service_error_fails_and_allows_retry(question, caplog):
    service = BrokenService()
    coordinator = ExplanationCoordinator(service)

    with caplog.at_level(logging.ERROR):
        failed = await coordinator.request(1, question, 0)

    assert failed.status is ExplanationStatus.FAILED
    assert failed.error == EXPLANATION_FAILED_MESSAGE
    assert "raised unexpectedly" in caplog.text

    retried = await coordinator.request(1, question, 0)
    assert retried.status is ExplanationStatus.READY
    assert len(service.requests) == 2


@pytest.mark.asyncio
async def test_cancelled_request_returns_to_idle(explanation_service, question):
    explanation_service.gate = asyncio.Event()
    coordinator = ExplanationCoordinator(explanation_service)

    pending = asyncio.create_task(coordinator.request(1, question, 0))
    await asyncio.sleep(0)
    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert coordinator.state.status is ExplanationStatus.IDLE
    explanation_service.gate = None
    retried = await coordinator.request(1, question, 0)
    assert retried.status is ExplanationStatus.READY
    assert len(explanation_service.requests) == 2
