import pytest

from exam_delivery.errors import NotFoundError, UnsupportedQuestionTypeError, ValidationError
from exam_delivery.schemas import QuestionCreate
from exam_delivery.services.question_service import add_question, list_questions


def _payload(**overrides):
    data = {
        "type": "multi-select",
        "question_text": "Pick the even numbers",
        "options": ["1", "2", "3", "4"],
        "correct_answer": ["3", "1"],
        "points": 2,
    }
    data.update(overrides)
    return QuestionCreate(**data)


def test_add_question_stores_normalized_form(session, registry, make_exam):
    exam = make_exam([])
    question = add_question(session, registry, exam.id, _payload())

    assert question.id is not None
    assert question.exam_id == exam.id
    assert question.correct_answer == ["1", "3"]
    assert question.points == 2
    assert question.order == 0


def test_unsupported_type_is_rejected(session, registry, make_exam):
    exam = make_exam([])
    with pytest.raises(UnsupportedQuestionTypeError) as exc:
        add_question(session, registry, exam.id, _payload(type="essay"))
    assert exc.value.message == 'Question type "essay" is not supported'


def test_invalid_question_is_not_stored(session, registry, make_exam):
    exam = make_exam([])
    with pytest.raises(ValidationError) as exc:
        add_question(session, registry, exam.id, _payload(correct_answer=["1"]))
    assert exc.value.status_code == 422
    assert list_questions(session, registry, exam.id) == []


def test_unknown_exam(session, registry):
    with pytest.raises(NotFoundError):
        add_question(session, registry, 424242, _payload())


def test_list_questions_in_canonical_order_without_keys(session, registry, make_exam):
    exam = make_exam([])
    add_question(session, registry, exam.id, _payload(question_text="Second", order=2))
    add_question(
        session,
        registry,
        exam.id,
        _payload(type="single-select", question_text="First", correct_answer="2", order=1),
    )

    views = list_questions(session, registry, exam.id)
    assert [view.question_text for view in views] == ["First", "Second"]
    assert all("correct_answer" not in view.model_dump() for view in views)
