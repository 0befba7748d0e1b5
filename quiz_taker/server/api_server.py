"""FastAPI server exposing the quiz-taking session to the browser."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
import uvicorn

from quiz_taker.constants.about import APP_NAME, APP_VERSION
from quiz_taker.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_taker.constants.ui_constants import (
    CORRECT_FEEDBACK,
    INCORRECT_FEEDBACK,
    PAGE_TITLE,
    QUIZ_NOT_FOUND_MESSAGE,
    SESSION_NOT_FOUND_MESSAGE,
    TIMER_WARNING_TEMPLATE,
)
from quiz_taker.core.errors import (
    InvalidPhaseTransition,
    InvalidSelection,
    QuizNotFound,
    QuizValidationError,
    SessionNotFound,
    StorageUnavailable,
)
from quiz_taker.core.markdown_math_renderer import renderer
from quiz_taker.core.models import Quiz, SessionPhase
from quiz_taker.core.quiz_schema import parse_quiz
from quiz_taker.core.services.quiz_session import QuizSession
from quiz_taker.core.session_manager import SessionManager

logger = logging.getLogger(__name__)

_TAKER_PAGE_HTML = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>__PAGE_TITLE__</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0 auto; max-width: 48rem; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .muted { color: #94a3b8; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.6; cursor: not-allowed; }
      .ghost-button { border: 1px solid #334155; border-radius: 0.75rem; padding: 0.6rem 1.2rem; background: transparent; color: #f5f7ff; cursor: pointer; }
      .option-button { display: block; width: 100%; text-align: left; border: none; border-radius: 0.75rem; padding: 1rem; margin-bottom: 0.75rem; font-size: 1rem; background: #1e293b; color: #fff; cursor: pointer; }
      .option-button:disabled { cursor: default; }
      .option-button.correct { background: #166534; }
      .option-button.wrong { background: #991b1b; }
      .progress-track { width: 100%; height: 0.3rem; background: #1e293b; border-radius: 999px; overflow: hidden; }
      #progress-fill { height: 100%; background: #1f9aa5; width: 0; transition: width 300ms ease; }
      #timer-label { color: #facc15; font-weight: 600; }
      #feedback.correct { border-left: 4px solid #4ade80; padding-left: 0.75rem; }
      #feedback.wrong { border-left: 4px solid #f87171; padding-left: 0.75rem; }
      #explanation-box { border: 1px solid #1f9aa5; border-radius: 0.75rem; padding: 1rem; white-space: pre-wrap; }
      input { border-radius: 0.5rem; border: 1px solid #334155; background: #0b1120; color: #f5f7ff; padding: 0.6rem; font-size: 1rem; }
    </style>
    <script>
      window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, svg: { fontCache: 'global' } };
    </script>
    <script defer src=\"https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js\"></script>
  </head>
  <body>
    <section class=\"card\" id=\"join-card\">
      <h1>__PAGE_TITLE__</h1>
      <p><input id=\"quiz-input\" placeholder=\"Quiz id\" /> <input id=\"user-input\" placeholder=\"Your username\" /></p>
      <button id=\"join-button\" class=\"primary-button\">Take Quiz</button>
      <p id=\"join-status\" class=\"muted\"></p>
    </section>
    <section class=\"card hidden\" id=\"intro-card\">
      <h1 id=\"quiz-title\"></h1>
      <p id=\"quiz-description\" class=\"muted\"></p>
      <p id=\"timer-warning\"></p>
      <button id=\"start-button\" class=\"primary-button\">Start Quiz</button>
    </section>
    <section class=\"card hidden\" id=\"quiz-card\">
      <p class=\"muted\"><span id=\"question-counter\"></span> <span id=\"timer-label\"></span></p>
      <div class=\"progress-track\"><div id=\"progress-fill\"></div></div>
      <div id=\"question-container\"></div>
      <div id=\"options-container\"></div>
      <div id=\"feedback\" class=\"hidden\"></div>
      <p><button id=\"explain-button\" class=\"ghost-button hidden\">Ask AI for Explanation</button></p>
      <p id=\"explanation-status\" class=\"muted\"></p>
      <div id=\"explanation-box\" class=\"hidden\"></div>
      <p><button id=\"next-button\" class=\"primary-button hidden\"></button></p>
    </section>
    <section class=\"card hidden\" id=\"results-card\">
      <h1>Quiz Complete</h1>
      <p id=\"results-expired\" class=\"muted\"></p>
      <p id=\"results-score\" style=\"font-size: 2rem;\"></p>
      <p id=\"results-detail\" class=\"muted\"></p>
      <button class=\"primary-button\" onclick=\"window.location.href='/'\">Back to Home</button>
    </section>
    <script>
      const cards = ['join-card', 'intro-card', 'quiz-card', 'results-card'];
      const byId = id => document.getElementById(id);
      const params = new URLSearchParams(window.location.search);
      let sessionId = null;
      let pollHandle = null;
      let renderedQuestion = null;

      function showCard(name) {
        cards.forEach(card => byId(card).classList.toggle('hidden', card !== name));
      }

      async function callApi(method, path, body) {
        const response = await fetch(path, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body)
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function formatSeconds(seconds) {
        const minutes = Math.floor(seconds / 60);
        const rest = String(seconds % 60).padStart(2, '0');
        return `${minutes}:${rest}`;
      }

      function typesetMath() {
        if (window.MathJax && window.MathJax.typesetPromise) {
          window.MathJax.typesetPromise([byId('question-container'), byId('options-container')]).catch(() => {});
        }
      }

      function renderQuestion(state) {
        const question = state.question;
        byId('question-counter').textContent = `Question ${state.question_number} of ${state.question_count}`;
        byId('progress-fill').style.width = `${(state.question_number / state.question_count) * 100}%`;
        if (renderedQuestion !== state.question_number) {
          renderedQuestion = state.question_number;
          byId('question-container').innerHTML = question.html;
          const container = byId('options-container');
          container.innerHTML = '';
          question.options.forEach((option, index) => {
            const button = document.createElement('button');
            button.className = 'option-button';
            button.textContent = option;
            button.addEventListener('click', () => selectAnswer(index));
            container.appendChild(button);
          });
          typesetMath();
        }
        const revealed = state.phase === 'answer_revealed';
        byId('options-container').querySelectorAll('.option-button').forEach((button, index) => {
          button.disabled = revealed;
          button.classList.toggle('correct', revealed && index === state.correct_option_index);
          button.classList.toggle('wrong', revealed && index === state.selected_option_index && !state.last_answer_correct);
        });
        const feedback = byId('feedback');
        feedback.className = revealed ? (state.last_answer_correct ? 'correct' : 'wrong') : 'hidden';
        feedback.textContent = revealed ? state.feedback : '';
        renderExplanation(state, revealed);
        const next = byId('next-button');
        next.classList.toggle('hidden', !revealed);
        next.textContent = state.question_number < state.question_count ? 'Next Question' : 'Finish Quiz';
      }

      function renderExplanation(state, revealed) {
        const explanation = state.explanation;
        const button = byId('explain-button');
        const status = byId('explanation-status');
        const box = byId('explanation-box');
        const canAsk = revealed && (explanation.status === 'idle' || explanation.status === 'failed');
        button.classList.toggle('hidden', !canAsk);
        button.textContent = explanation.status === 'failed' ? 'Try Again' : 'Ask AI for Explanation';
        status.textContent = explanation.status === 'pending' ? 'Generating explanation…' : (explanation.error || '');
        box.classList.toggle('hidden', explanation.status !== 'ready');
        box.textContent = explanation.text || '';
      }

      function renderResults(state) {
        const result = state.result;
        showCard('results-card');
        byId('results-expired').textContent = result.expired ? 'Time is up!' : '';
        byId('results-score').textContent = `${result.score}%`;
        byId('results-detail').textContent = `You answered ${result.correct_count} of ${result.total_questions} questions correctly.`;
      }

      function render(state) {
        if (state.phase === 'finished') {
          stopPolling();
          renderResults(state);
          releaseSession();
          return;
        }
        if (state.phase === 'not_started' || state.phase === 'timer_warning') {
          showCard('intro-card');
          byId('quiz-title').textContent = state.quiz.title;
          byId('quiz-description').textContent = state.quiz.description;
          byId('timer-warning').textContent = state.timer_warning || '';
          return;
        }
        showCard('quiz-card');
        byId('timer-label').textContent = state.remaining_seconds === null ? '' : `⏱ ${formatSeconds(state.remaining_seconds)}`;
        renderQuestion(state);
      }

      function startPolling() {
        if (!pollHandle) {
          pollHandle = setInterval(async () => {
            try {
              render(await callApi('GET', `/api/sessions/${sessionId}`));
            } catch (error) {
              console.error('Error refreshing session:', error);
            }
          }, 1000);
        }
      }

      function stopPolling() {
        if (pollHandle) {
          clearInterval(pollHandle);
          pollHandle = null;
        }
      }

      function releaseSession() {
        if (!sessionId) {
          return;
        }
        const path = `/api/sessions/${sessionId}`;
        sessionId = null;
        fetch(path, { method: 'DELETE', keepalive: true }).catch(() => {});
      }

      async function joinQuiz() {
        const quizId = byId('quiz-input').value.trim();
        const userId = byId('user-input').value.trim();
        if (!quizId || !userId) {
          byId('join-status').textContent = 'Please enter a quiz id and a username to take quizzes.';
          return;
        }
        try {
          let state = await callApi('POST', '/api/sessions', { quiz_id: quizId, user_id: userId });
          sessionId = state.session_id;
          if (state.quiz.timer_mode) {
            state = await callApi('POST', `/api/sessions/${sessionId}/timer-warning`);
          }
          render(state);
        } catch (error) {
          byId('join-status').textContent = error.message;
        }
      }

      async function act(path) {
        try {
          render(await callApi('POST', `/api/sessions/${sessionId}/${path}`));
        } catch (error) {
          console.error(`Error calling ${path}:`, error);
          render(await callApi('GET', `/api/sessions/${sessionId}`));
        }
      }

      async function selectAnswer(index) {
        try {
          render(await callApi('POST', `/api/sessions/${sessionId}/answer`, { selected_option_index: index }));
        } catch (error) {
          render(await callApi('GET', `/api/sessions/${sessionId}`));
        }
      }

      async function requestExplanation() {
        byId('explain-button').classList.add('hidden');
        byId('explanation-status').textContent = 'Generating explanation…';
        await act('explanation');
      }

      window.addEventListener('pagehide', releaseSession);
      byId('join-button').addEventListener('click', joinQuiz);
      byId('start-button').addEventListener('click', async () => { await act('start'); startPolling(); });
      byId('explain-button').addEventListener('click', requestExplanation);
      byId('next-button').addEventListener('click', () => act('advance'));
      byId('quiz-input').value = params.get('quiz') || '';
      byId('user-input').value = params.get('user') || '';
      if (params.get('quiz') && params.get('user')) {
        joinQuiz();
      }
    </script>
  </body>
</html>
""".replace("__PAGE_TITLE__", PAGE_TITLE)


class OpenSessionPayload(BaseModel):
    """Payload schema for starting a quiz attempt."""

    quiz_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    selected_option_index: int


def _get_session_manager_dependency(session_manager: SessionManager):
    def dependency() -> SessionManager:
        return session_manager

    return dependency


def _quiz_summary(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "timer_mode": quiz.timer_mode,
        "time_limit": quiz.time_limit,
        "question_count": quiz.question_count,
    }


def _session_payload(session_id: str, session: QuizSession) -> dict[str, Any]:
    snapshot = session.snapshot()
    revealed = snapshot.phase is SessionPhase.ANSWER_REVEALED
    question_payload = None
    if snapshot.current_question is not None:
        question = snapshot.current_question
        question_payload = {
            "text": question.text,
            "html": renderer.render_fragment(question.text),
            "options": list(question.options),
        }

    feedback = None
    correct_index = None
    if revealed and snapshot.current_question is not None:
        # The correct option is only disclosed once the question is answered.
        correct_index = snapshot.current_question.correct_option_index
        if snapshot.last_answer_correct:
            feedback = CORRECT_FEEDBACK
        else:
            feedback = f"{INCORRECT_FEEDBACK} The correct answer is: {snapshot.current_question.correct_option_text}"

    timer_warning = None
    if snapshot.phase is SessionPhase.TIMER_WARNING:
        timer_warning = TIMER_WARNING_TEMPLATE.format(minutes=session.quiz.time_limit)

    result_payload = None
    if snapshot.result is not None:
        result_payload = {
            "correct_count": snapshot.result.correct_count,
            "total_questions": snapshot.result.total_questions,
            "score": snapshot.result.score,
            "expired": snapshot.result.expired,
        }

    return {
        "session_id": session_id,
        "user_id": session.user_id,
        "quiz": _quiz_summary(session.quiz),
        "phase": snapshot.phase.value,
        "question_number": snapshot.current_question_index + 1,
        "question_count": snapshot.question_count,
        "question": question_payload,
        "selected_option_index": snapshot.selected_option_index,
        "correct_option_index": correct_index,
        "last_answer_correct": snapshot.last_answer_correct,
        "feedback": feedback,
        "correct_count": snapshot.correct_count,
        "remaining_seconds": snapshot.remaining_seconds,
        "timer_warning": timer_warning,
        "explanation": {
            "status": snapshot.explanation.status.value,
            "text": snapshot.explanation.text,
            "error": snapshot.explanation.error,
        },
        "result": result_payload,
    }


def _lookup_session(manager: SessionManager, session_id: str) -> QuizSession:
    try:
        return manager.get_session(session_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND_MESSAGE) from exc


def create_api_app(session_manager: SessionManager) -> FastAPI:
    """Create a FastAPI application wired to the provided session manager."""
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        session_manager.close_all()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    session_manager_dep = _get_session_manager_dependency(session_manager)

    @app.get("/", response_class=HTMLResponse)
    async def serve_taker_page() -> str:
        return _TAKER_PAGE_HTML

    @app.get("/api/quizzes/{quiz_id}")
    async def get_quiz(quiz_id: str, manager: SessionManager = Depends(session_manager_dep)) -> dict[str, object]:
        try:
            quiz = await manager.get_quiz(quiz_id)
        except QuizNotFound as exc:
            raise HTTPException(status_code=404, detail=QUIZ_NOT_FOUND_MESSAGE) from exc
        return _quiz_summary(quiz)

    @app.post("/api/quizzes", status_code=201)
    async def create_quiz(
        payload: dict[str, Any],
        manager: SessionManager = Depends(session_manager_dep),
    ) -> dict[str, object]:
        try:
            quiz = await manager.create_quiz(parse_quiz(payload))
        except QuizValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except StorageUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return _quiz_summary(quiz)

    @app.post("/api/sessions", status_code=201)
    async def open_session(
        payload: OpenSessionPayload,
        manager: SessionManager = Depends(session_manager_dep),
    ) -> dict[str, Any]:
        try:
            session_id = await manager.open_session(payload.quiz_id, payload.user_id)
        except QuizNotFound as exc:
            raise HTTPException(status_code=404, detail=QUIZ_NOT_FOUND_MESSAGE) from exc
        except (StorageUnavailable, QuizValidationError) as exc:
            logger.error("Cannot start quiz %s: %s", payload.quiz_id, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return _session_payload(session_id, manager.get_session(session_id))

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str, manager: SessionManager = Depends(session_manager_dep)) -> dict[str, Any]:
        return _session_payload(session_id, _lookup_session(manager, session_id))

    @app.post("/api/sessions/{session_id}/timer-warning")
    async def show_timer_warning(
        session_id: str,
        manager: SessionManager = Depends(session_manager_dep),
    ) -> dict[str, Any]:
        session = _lookup_session(manager, session_id)
        try:
            session.show_timer_warning()
        except InvalidPhaseTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session_id, session)

    @app.post("/api/sessions/{session_id}/start")
    async def start_session(session_id: str, manager: SessionManager = Depends(session_manager_dep)) -> dict[str, Any]:
        session = _lookup_session(manager, session_id)
        try:
            session.start()
        except InvalidPhaseTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session_id, session)

    @app.post("/api/sessions/{session_id}/answer")
    async def submit_answer(
        session_id: str,
        payload: AnswerPayload,
        manager: SessionManager = Depends(session_manager_dep),
    ) -> dict[str, Any]:
        session = _lookup_session(manager, session_id)
        try:
            session.select_answer(payload.selected_option_index)
        except InvalidSelection as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except InvalidPhaseTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session_id, session)

    @app.post("/api/sessions/{session_id}/advance")
    async def advance(session_id: str, manager: SessionManager = Depends(session_manager_dep)) -> dict[str, Any]:
        session = _lookup_session(manager, session_id)
        try:
            session.advance()
        except InvalidPhaseTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session_id, session)

    @app.post("/api/sessions/{session_id}/explanation")
    async def request_explanation(
        session_id: str,
        manager: SessionManager = Depends(session_manager_dep),
    ) -> dict[str, Any]:
        session = _lookup_session(manager, session_id)
        try:
            await session.request_explanation()
        except InvalidPhaseTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session_id, session)

    @app.delete("/api/sessions/{session_id}", status_code=204)
    async def close_session(session_id: str, manager: SessionManager = Depends(session_manager_dep)) -> None:
        try:
            manager.close_session(session_id)
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND_MESSAGE) from exc

    return app


def run_api_server(
    session_manager: SessionManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(session_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
