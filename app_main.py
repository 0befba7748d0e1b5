"""Application entry point for the QuizTaker server."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from quiz_taker.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_taker.constants.network_constants import (
    DEFAULT_EXPLANATION_SERVICE_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
)
from quiz_taker.core.quiz_importer import QuizImportError, load_quiz_from_file
from quiz_taker.core.services.explanation_client import ExplanationClient
from quiz_taker.core.services.http_quiz_store import HttpQuizStore
from quiz_taker.core.services.quiz_store import InMemoryQuizStore, QuizStore
from quiz_taker.core.session_manager import SessionManager
from quiz_taker.server.api_server import run_api_server
from quiz_taker.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="quiz-taker", description=APP_ABOUT_TEXT)
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION} ({APP_LICENSE})")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--quiz",
        dest="quiz_files",
        type=Path,
        action="append",
        default=[],
        help="Quiz file (.txt or .json) to load into the in-memory store; repeatable.",
    )
    parser.add_argument("--storage-url", help="Base URL of a quiz storage service to use instead of memory.")
    parser.add_argument("--explanation-url", default=DEFAULT_EXPLANATION_SERVICE_URL)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


async def _seed_store(store: InMemoryQuizStore, quiz_files: list[Path]) -> None:
    for quiz_file in quiz_files:
        quiz = await store.save_quiz(load_quiz_from_file(quiz_file))
        logging.getLogger("quiz_taker").info("Loaded '%s' from %s as quiz %s", quiz.title, quiz_file, quiz.id)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, prepare storage and serve the taker API."""
    args = _parse_args(argv)
    logger = configure_logging(args.log_level.upper())
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    store: QuizStore
    if args.storage_url:
        store = HttpQuizStore(args.storage_url)
        logger.info("Using quiz storage at %s", args.storage_url)
    else:
        memory_store = InMemoryQuizStore()
        try:
            asyncio.run(_seed_store(memory_store, args.quiz_files))
        except QuizImportError as exc:
            raise SystemExit(f"Could not import quiz: {exc}") from exc
        store = memory_store

    manager = SessionManager(store=store, explanation_service=ExplanationClient(args.explanation_url))
    logger.info("Taker page available at http://%s:%d/", args.host, args.port)
    run_api_server(manager, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
