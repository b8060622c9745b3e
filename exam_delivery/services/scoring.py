"""Aggregate per-question marks into an attempt score."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from exam_delivery.models import Question
from exam_delivery.question_types import StrategyRegistry
from exam_delivery.utils import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreCard:
    score: int
    max_score: int
    percentage: int
    passed: bool


class ScoringEngine:
    """Re-scans the whole exam each time, so the result depends only on the
    final answers map and not on the order answers arrived in."""

    def __init__(self, registry: StrategyRegistry):
        self.registry = registry

    def mark(self, question: Question, answers: Mapping[str, Any]) -> int:
        """Points earned on one question; 0 when unanswered."""
        entry = answers.get(str(question.id))
        if not isinstance(entry, dict) or "answer" not in entry:
            logger.debug("No answer found for question %s", question.id)
            return 0
        if not self.registry.is_supported(question.type):
            logger.warning(
                "Question %s has unsupported type %r; scored as 0", question.id, question.type
            )
            return 0

        strategy = self.registry.get(question.type)
        earned = strategy.mark_answer(
            entry["answer"], question.correct_answer, question.points, question.options
        )
        logger.debug(
            "Question %s marked: %s/%s", question.id, earned, question.points
        )
        return earned

    def score(
        self,
        questions: Sequence[Question],
        answers: Mapping[str, Any],
        pass_percentage: int,
    ) -> ScoreCard:
        score = 0
        max_score = 0
        for question in questions:
            max_score += question.points
            score += self.mark(question, answers)

        percentage = round_half_up(score / max_score * 100) if max_score > 0 else 0
        return ScoreCard(
            score=score,
            max_score=max_score,
            percentage=percentage,
            passed=percentage >= pass_percentage,
        )
