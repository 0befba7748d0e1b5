"""Utilities for importing quizzes from JSON or a human-friendly text file.

Text format: a header block followed by question blocks, separated by blank
lines or '---'.

    TITLE: Quiz title
    DESCRIPTION: What the quiz is about. Additional lines until the next
       marker are treated as part of the description.
    TIMELIMIT: minutes (optional; enables timer mode)
    CREATOR: author id (optional)

    Q: Question text (supports markdown + LaTeX).
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D

Example:

    TITLE: Arithmetic
    DESCRIPTION: Warm-up questions.
    TIMELIMIT: 5

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B

JSON files use the same shape as the storage API
(``title``, ``description``, ``timerMode``, ``timeLimit``, ``questions`` with
``question``, ``answer`` and ``correctAnswerIndex``). Either way the result
goes through :mod:`quiz_taker.core.quiz_schema`, so a file is accepted
completely or rejected.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from quiz_taker.core.errors import QuizValidationError
from quiz_taker.core.models import Quiz
from quiz_taker.core.quiz_schema import parse_quiz, parse_quiz_json


class QuizImportError(QuizValidationError):
    """Raised when a quiz definition cannot be parsed."""


_OPTION_ORDER = ["A", "B", "C", "D"]
_HEADER_KEYS = ("TITLE", "DESCRIPTION", "TIMELIMIT", "CREATOR")


def load_quiz_from_file(file_path: Path) -> Quiz:
    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            return parse_quiz_json(text)
        except QuizValidationError as exc:
            raise QuizImportError(f"{file_path.name}: {exc}") from exc
    return parse_quiz_text(text)


def parse_quiz_text(text: str) -> Quiz:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file is empty.")
    payload = _parse_header(blocks[0])
    questions = [_parse_block(block) for block in blocks[1:]]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    payload["questions"] = questions
    try:
        return parse_quiz(payload)
    except QuizValidationError as exc:
        raise QuizImportError(str(exc)) from exc


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _parse_header(block: str) -> dict[str, Any]:
    values: dict[str, str] = {}
    current_key: str | None = None
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, separator, value = line.partition(":")
        if separator and key.strip().upper() in _HEADER_KEYS:
            current_key = key.strip().upper()
            values[current_key] = value.strip()
        elif current_key == "DESCRIPTION":
            values[current_key] = f"{values[current_key]}\n{line}"
        else:
            raise QuizImportError(f"Unexpected line in quiz header: '{line}'.")

    if "TITLE" not in values:
        raise QuizImportError("Quiz header must start with TITLE: ...")

    header: dict[str, Any] = {
        "title": values["TITLE"],
        "description": values.get("DESCRIPTION", ""),
        "creator": values.get("CREATOR") or None,
    }
    raw_limit = values.get("TIMELIMIT")
    if raw_limit is not None:
        try:
            header["timeLimit"] = int(raw_limit)
        except ValueError as exc:
            raise QuizImportError("TIMELIMIT must be an integer number of minutes.") from exc
        header["timerMode"] = True
    return header


def _parse_block(block: str) -> dict[str, Any]:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) != len(_OPTION_ORDER):
        raise QuizImportError("Each question must define exactly four options (A-D).")
    if correct_letter is None:
        raise QuizImportError("Each question must name its correct option (CORRECT: A-D).")
    if correct_letter not in _OPTION_ORDER:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    return {
        "question": "\n".join(question_lines).strip(),
        "answer": [options[letter] for letter in _OPTION_ORDER],
        "correctAnswerIndex": _OPTION_ORDER.index(correct_letter),
    }
