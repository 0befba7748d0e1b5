from __future__ import annotations

import pytest

from conftest import make_quiz
from quiz_taker.core.answer_evaluator import evaluate
from quiz_taker.core.errors import InvalidSelection


def test_correct_option_is_recognised():
    question = make_quiz(3).questions[2]

    assert evaluate(question, 2).is_correct is True
    assert evaluate(question, 0).is_correct is False


@pytest.mark.parametrize("selected", [-1, 4, 17])
def test_out_of_range_selection_is_rejected(selected):
    question = make_quiz(1).questions[0]

    with pytest.raises(InvalidSelection) as excinfo:
        evaluate(question, selected)

    assert excinfo.value.selected_index == selected
    assert excinfo.value.option_count == 4


@pytest.mark.parametrize("selected", [True, 1.0, "1", None])
def test_non_integer_selection_is_rejected(selected):
    question = make_quiz(2).questions[1]

    with pytest.raises(InvalidSelection):
        evaluate(question, selected)
