"""Question authoring: validate free-form input through the type strategy, then store it."""

import logging
from typing import List

from sqlmodel import Session

from exam_delivery.errors import NotFoundError, UnsupportedQuestionTypeError
from exam_delivery.models import Question
from exam_delivery.question_types import StrategyRegistry
from exam_delivery.repositories import ExamRepository, QuestionRepository
from exam_delivery.schemas import QuestionCreate, QuestionView

logger = logging.getLogger(__name__)


def add_question(
    session: Session, registry: StrategyRegistry, exam_id: int, data: QuestionCreate
) -> Question:
    """Create a question on an exam.

    Raises:
        NotFoundError: the exam does not exist.
        UnsupportedQuestionTypeError: no strategy is registered for ``data.type``.
        ValidationError: the question text, options, points or answer key are invalid.
    """
    exam = ExamRepository(session).find_by_id(exam_id)
    if not exam:
        raise NotFoundError("Exam not found")

    if not registry.is_supported(data.type):
        logger.warning("Rejected question with unsupported type %r", data.type)
        raise UnsupportedQuestionTypeError(data.type)

    normalized = registry.get(data.type).create_question(data)
    question = QuestionRepository(session).add(exam_id, normalized)
    logger.info("Question %s (%s) added to exam %s", question.id, question.type, exam_id)
    return question


def list_questions(
    session: Session, registry: StrategyRegistry, exam_id: int
) -> List[QuestionView]:
    """Client-safe views of an exam's questions in canonical order."""
    exam = ExamRepository(session).find_by_id(exam_id)
    if not exam:
        raise NotFoundError("Exam not found")
    return [
        registry.get(q.type).render(q)
        for q in QuestionRepository(session).find_by_exam_id(exam_id)
    ]
