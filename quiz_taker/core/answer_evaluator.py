"""Correctness check for a single selected option."""

from __future__ import annotations

from quiz_taker.core.errors import InvalidSelection
from quiz_taker.core.models import EvaluationResult, Question


def evaluate(question: Question, selected_index: int) -> EvaluationResult:
    """Compare the selected option index with the question's correct option."""
    option_count = len(question.options)
    # bool is an int subclass; True must not select option 1.
    if isinstance(selected_index, bool) or not isinstance(selected_index, int):
        raise InvalidSelection(selected_index, option_count)
    if not 0 <= selected_index < option_count:
        raise InvalidSelection(selected_index, option_count)
    return EvaluationResult(is_correct=selected_index == question.correct_option_index)
