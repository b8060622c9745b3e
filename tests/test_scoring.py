import itertools

from exam_delivery.models import Question
from exam_delivery.question_types import build_default_registry
from exam_delivery.services.scoring import ScoringEngine


def _questions():
    return [
        Question(
            id=1, exam_id=1, type="single-select", question_text="Q1",
            options=["a", "b", "c"], correct_answer="b", points=2,
        ),
        Question(
            id=2, exam_id=1, type="multi-select", question_text="Q2",
            options=["a", "b", "c"], correct_answer=["0", "2"], points=3,
        ),
        Question(
            id=3, exam_id=1, type="single-select", question_text="Q3",
            options=["x", "y"], correct_answer="x", points=1,
        ),
    ]


def _entry(answer):
    return {"answer": answer, "answered_at": "2026-03-02T09:00:00"}


def test_max_score_is_sum_of_points_regardless_of_answer_order():
    engine = ScoringEngine(build_default_registry())
    answered = [("1", _entry("1")), ("2", _entry(["2", "0"])), ("3", _entry("y"))]
    for permutation in itertools.permutations(answered):
        card = engine.score(_questions(), dict(permutation), pass_percentage=50)
        assert card.max_score == 6
        assert card.score == 5
        assert card.percentage == 83
        assert card.passed is True


def test_unanswered_questions_score_zero():
    card = ScoringEngine(build_default_registry()).score(_questions(), {}, pass_percentage=50)
    assert (card.score, card.max_score, card.percentage, card.passed) == (0, 6, 0, False)


def test_unsupported_type_scores_zero():
    question = Question(
        id=9, exam_id=1, type="essay", question_text="Explain",
        options=[], correct_answer="x", points=4,
    )
    engine = ScoringEngine(build_default_registry())
    assert engine.mark(question, {"9": _entry("x")}) == 0


def test_empty_exam_has_zero_percentage():
    card = ScoringEngine(build_default_registry()).score([], {}, pass_percentage=0)
    assert card.percentage == 0
    assert card.passed is True
