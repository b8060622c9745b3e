"""Single-select questions: exactly one correct option."""

from __future__ import annotations

import logging
from typing import Any, Optional

from exam_delivery.constants import QuestionType
from exam_delivery.question_types.base import QuestionTypeStrategy
from exam_delivery.utils import parse_index_token

logger = logging.getLogger(__name__)


def _to_option_text(value: Any, options: Optional[list[str]]) -> str:
    """Lower-cased option text for an index or a literal answer."""
    raw = str(value).strip()
    index = parse_index_token(value if isinstance(value, int) else raw)
    if index is not None and options and index < len(options):
        return options[index].strip().lower()
    return raw.lower()


def _key_text(correct_answer: Any, options: Optional[list[str]]) -> str:
    """Lower-cased text of a stored key.

    Keys are stored as option text, so an exact option match wins over
    reading the key as an index (options may themselves be numbers).
    """
    raw = str(correct_answer).strip().lower()
    if options and any(opt.strip().lower() == raw for opt in options):
        return raw
    return _to_option_text(correct_answer, options)


class SingleSelectStrategy(QuestionTypeStrategy):
    """The correct answer may be given as an option index or as the option text.

    Both the stored key and every incoming answer are reduced to lower-cased
    option text before comparing, so "1" and "Paris" mark the same way when
    option 1 is "Paris".
    """

    type_tag = QuestionType.SINGLE_SELECT.value

    def normalize_correct_answer(
        self, correct_answer: Any, options: list[str], errors: dict[str, str]
    ) -> Optional[str]:
        if isinstance(correct_answer, bool) or correct_answer is None:
            errors["correct_answer"] = "Correct answer must be specified."
            return None

        if isinstance(correct_answer, int):
            if correct_answer < 0 or correct_answer >= len(options):
                errors["correct_answer"] = self._out_of_range(correct_answer, options)
                return None
            return options[correct_answer]

        if not isinstance(correct_answer, str):
            errors["correct_answer"] = "Correct answer for single-select must be a single value."
            return None

        answer_clean = correct_answer.strip()
        if not answer_clean:
            errors["correct_answer"] = "Correct answer must be specified."
            return None

        index = parse_index_token(answer_clean)
        if index is not None and index < len(options):
            return options[index]

        # Not an in-range index: treat it as option text (case-insensitive)
        for opt in options:
            if opt.lower() == answer_clean.lower():
                return opt

        if index is not None:
            errors["correct_answer"] = self._out_of_range(index, options)
        else:
            errors["correct_answer"] = "Correct answer must be one of the provided options."
        return None

    def validate_answer_format(self, answer: Any) -> bool:
        if isinstance(answer, bool) or not isinstance(answer, (str, int, float)):
            logger.warning(
                "Invalid answer format for single-select question: %r (%s)",
                answer,
                type(answer).__name__,
            )
            return False
        if isinstance(answer, str) and not answer.strip():
            return False
        return True

    def mark_answer(
        self,
        answer: Any,
        correct_answer: Any,
        points: int,
        options: Optional[list[str]] = None,
    ) -> int:
        if not self.validate_answer_format(answer):
            logger.warning("Single-select marking failed: invalid answer format %r", answer)
            return 0
        if not self.validate_answer_format(correct_answer):
            logger.warning("Single-select marking failed: invalid answer key %r", correct_answer)
            return 0
        try:
            user_text = _to_option_text(answer, options)
            correct_text = _key_text(correct_answer, options)
        except (AttributeError, TypeError) as exc:
            logger.warning("Single-select marking failed: %s", exc)
            return 0

        is_correct = user_text == correct_text
        logger.debug(
            "Single-select answer marked: user=%r correct=%r is_correct=%s",
            user_text,
            correct_text,
            is_correct,
        )
        return points if is_correct else 0

    @staticmethod
    def _out_of_range(index: int, options: list[str]) -> str:
        return (
            f"Correct answer index {index} is out of range. "
            f"Must be between 0 and {len(options) - 1}."
        )
