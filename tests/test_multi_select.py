"""Multi-select authoring and exact-set marking."""

import pytest

from exam_delivery.errors import ValidationError
from exam_delivery.question_types import MultiSelectStrategy
from exam_delivery.schemas import QuestionCreate

OPTIONS = ["2", "4", "5", "9"]


@pytest.fixture
def strategy():
    return MultiSelectStrategy()


def _create(strategy, correct):
    return strategy.create_question(
        QuestionCreate(
            type="multi-select",
            question_text="Which numbers are prime?",
            options=list(OPTIONS),
            correct_answer=correct,
            points=3,
        )
    )


class TestCreateQuestion:
    def test_key_is_deduplicated_and_sorted(self, strategy):
        question = _create(strategy, ["2", "0", 2, "0"])
        assert question.correct_answer == ["0", "2"]
        assert question.points == 3

    @pytest.mark.parametrize("correct", [["0", "4"], ["0", "-1"], ["0", "01"], ["0", "x"]])
    def test_invalid_index_is_rejected(self, strategy, correct):
        with pytest.raises(ValidationError) as exc:
            _create(strategy, correct)
        assert "Invalid correct answer index" in exc.value.errors["correct_answer"]

    @pytest.mark.parametrize("correct", ["1", ["1"], ["1", "1"]])
    def test_fewer_than_two_correct_is_rejected(self, strategy, correct):
        with pytest.raises(ValidationError) as exc:
            _create(strategy, correct)
        assert "at least 2" in exc.value.errors["correct_answer"]

    def test_non_list_key_is_rejected(self, strategy):
        with pytest.raises(ValidationError):
            _create(strategy, {"0": True})


class TestMarkAnswer:
    KEY = ["0", "2"]

    @pytest.mark.parametrize("answer", [["0", "2"], ["2", "0"], ["2", "0", "2"]])
    def test_same_set_scores_full(self, strategy, answer):
        assert strategy.mark_answer(answer, self.KEY, 3, OPTIONS) == 3

    @pytest.mark.parametrize(
        "answer",
        [["0"], ["0", "1", "2"], ["0", "3"], [], ["0", "2", "9"], ["0", "02"]],
    )
    def test_any_other_set_scores_zero(self, strategy, answer):
        assert strategy.mark_answer(answer, self.KEY, 3, OPTIONS) == 0

    def test_answer_format(self, strategy):
        assert strategy.validate_answer_format(["0", "2"]) is True
        assert strategy.validate_answer_format("0") is False
        assert strategy.validate_answer_format([0, 2]) is False
        assert strategy.validate_answer_format(["0", " "]) is False

    def test_bad_key_scores_zero(self, strategy):
        assert strategy.mark_answer(["0", "2"], "0,2", 3, OPTIONS) == 0
        assert strategy.mark_answer(["0", "2"], [], 3, OPTIONS) == 0
