"""Multi-select questions: all-or-nothing exact set match over option indices."""

from __future__ import annotations

import logging
from typing import Any, Optional

from exam_delivery.constants import QuestionType
from exam_delivery.question_types.base import QuestionTypeStrategy
from exam_delivery.utils import parse_index_token

logger = logging.getLogger(__name__)

MIN_CORRECT_ANSWERS = 2


def _index_set(tokens: list, option_count: Optional[int]) -> Optional[set[int]]:
    """Distinct indices for ``tokens``; None if any token is not a valid index."""
    indices = set()
    for token in tokens:
        index = parse_index_token(token.strip() if isinstance(token, str) else token)
        if index is None:
            return None
        if option_count is not None and index >= option_count:
            return None
        indices.add(index)
    return indices


class MultiSelectStrategy(QuestionTypeStrategy):
    """Correct answers and submissions are sets of option indices.

    Stored keys are de-duplicated and sorted decimal strings. A single
    correct option is rejected: that question belongs to single-select.
    """

    type_tag = QuestionType.MULTI_SELECT.value

    def normalize_correct_answer(
        self, correct_answer: Any, options: list[str], errors: dict[str, str]
    ) -> Optional[list[str]]:
        if isinstance(correct_answer, (str, int)) and not isinstance(correct_answer, bool):
            tokens = [correct_answer]
        elif isinstance(correct_answer, list):
            tokens = correct_answer
        else:
            errors["correct_answer"] = (
                "Correct answer for multi-select must be a list of option indices."
            )
            return None

        for token in tokens:
            index = parse_index_token(token.strip() if isinstance(token, str) else token)
            if index is None or index >= len(options):
                errors["correct_answer"] = (
                    f"Invalid correct answer index: {token!r}. "
                    f"Must be a valid option index (0 to {len(options) - 1})."
                )
                return None

        indices = _index_set(tokens, len(options)) or set()
        if len(indices) < MIN_CORRECT_ANSWERS:
            errors["correct_answer"] = (
                f"Multi-select questions must have at least {MIN_CORRECT_ANSWERS} correct answers."
            )
            return None
        return [str(index) for index in sorted(indices)]

    def validate_answer_format(self, answer: Any) -> bool:
        if not isinstance(answer, list):
            logger.warning("Invalid answer format for multi-select question: %r is not a list", answer)
            return False
        if not all(isinstance(item, str) and item.strip() for item in answer):
            logger.warning(
                "Invalid answer format for multi-select question: all items must be non-empty strings (%r)",
                answer,
            )
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
            return 0
        if not isinstance(correct_answer, list) or not correct_answer:
            logger.error("Invalid answer key for multi-select question: %r", correct_answer)
            return 0

        option_count = len(options) if options else None
        user_indices = _index_set(answer, option_count)
        correct_indices = _index_set(correct_answer, option_count)
        if user_indices is None or correct_indices is None:
            logger.debug("Multi-select answer %r contains an invalid index", answer)
            return 0

        is_correct = user_indices == correct_indices
        logger.debug(
            "Multi-select answer marked: user=%s correct=%s is_correct=%s",
            sorted(user_indices),
            sorted(correct_indices),
            is_correct,
        )
        return points if is_correct else 0
