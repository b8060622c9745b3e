"""Contract shared by every question type strategy."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from exam_delivery.config import (
    DEFAULT_POINTS,
    MIN_OPTIONS,
    OPTION_MAX_LENGTH,
    QUESTION_TEXT_MAX_LENGTH,
)
from exam_delivery.errors import ValidationError
from exam_delivery.models import Question
from exam_delivery.schemas import NormalizedQuestion, QuestionCreate, QuestionView
from exam_delivery.utils import sanitize_question_text

logger = logging.getLogger(__name__)


class QuestionTypeStrategy(ABC):
    """Per-type algorithm for authoring, answer checking, marking and rendering.

    Subclasses set ``type_tag`` and implement the correct-answer handling;
    text, options and points are validated here the same way for all types.
    """

    type_tag: str = ""

    def create_question(self, data: QuestionCreate) -> NormalizedQuestion:
        """Validate free-form input and return the canonical stored shape.

        Raises:
            ValidationError: with a field -> message map when any rule fails.
        """
        errors: dict[str, str] = {}

        question_clean = self._validate_text(data.question_text, errors)
        options_clean = self._validate_options(data.options, errors)
        points = self._validate_points(data.points, errors)

        correct = None
        if "options" not in errors:
            correct = self.normalize_correct_answer(data.correct_answer, options_clean, errors)

        if errors:
            first = next(iter(errors.values()))
            raise ValidationError(first, errors)

        return NormalizedQuestion(
            type=self.type_tag,
            question_text=question_clean,
            options=options_clean,
            correct_answer=correct,
            points=points,
            order=data.order if data.order is not None else 0,
        )

    @abstractmethod
    def normalize_correct_answer(
        self, correct_answer: Any, options: list[str], errors: dict[str, str]
    ) -> Any:
        """Resolve the correct answer against cleaned options.

        Problems are recorded in ``errors`` under "correct_answer".
        """

    @abstractmethod
    def validate_answer_format(self, answer: Any) -> bool:
        """Shape check for a participant answer. Never raises."""

    @abstractmethod
    def mark_answer(
        self,
        answer: Any,
        correct_answer: Any,
        points: int,
        options: Optional[list[str]] = None,
    ) -> int:
        """Earned points in ``0..points``. Total: returns 0 on malformed input."""

    def render(self, question: Question) -> QuestionView:
        """Client-safe projection; the correct answer is never copied over."""
        return QuestionView(
            id=question.id,
            type=question.type,
            question_text=question.question_text,
            options=list(question.options or []),
            points=question.points,
            order=question.order,
        )

    # --- shared structural rules ---

    def _validate_text(self, question_text: Optional[str], errors: dict[str, str]) -> str:
        question_clean = sanitize_question_text(question_text or "")
        if not question_clean:
            errors["question_text"] = "Question text is required."
        elif len(question_clean) > QUESTION_TEXT_MAX_LENGTH:
            errors["question_text"] = (
                f"Question text must be at most {QUESTION_TEXT_MAX_LENGTH} characters."
            )
        return question_clean

    def _validate_options(self, options: Optional[list[str]], errors: dict[str, str]) -> list[str]:
        if not options:
            errors["options"] = f"At least {MIN_OPTIONS} options are required."
            return []

        options_clean = [(opt or "").strip() for opt in options]
        if len(options_clean) < MIN_OPTIONS:
            errors["options"] = f"At least {MIN_OPTIONS} options are required."
        elif any(not opt for opt in options_clean):
            errors["options"] = "All options must be provided and non-empty."
        elif any(len(opt) > OPTION_MAX_LENGTH for opt in options_clean):
            errors["options"] = f"Options must be at most {OPTION_MAX_LENGTH} characters."
        else:
            lowered = [opt.lower() for opt in options_clean]
            if len(lowered) != len(set(lowered)):
                errors["options"] = "All options must be unique."
        return options_clean

    def _validate_points(self, points: Optional[int], errors: dict[str, str]) -> int:
        if points is None:
            return DEFAULT_POINTS
        if isinstance(points, bool) or not isinstance(points, int) or points < 1:
            errors["points"] = "Points must be a positive whole number."
            return DEFAULT_POINTS
        return points
