"""Lookup from question type tag to its strategy instance."""

from __future__ import annotations

from exam_delivery.errors import UnsupportedQuestionTypeError
from exam_delivery.question_types.base import QuestionTypeStrategy
from exam_delivery.question_types.multi_select import MultiSelectStrategy
from exam_delivery.question_types.single_select import SingleSelectStrategy


class StrategyRegistry:
    """Register once at startup, look up on every request."""

    def __init__(self) -> None:
        self._strategies: dict[str, QuestionTypeStrategy] = {}

    def register(self, type_tag: str, strategy: QuestionTypeStrategy) -> None:
        self._strategies[type_tag] = strategy

    def get(self, type_tag: str) -> QuestionTypeStrategy:
        strategy = self._strategies.get(type_tag)
        if strategy is None:
            raise UnsupportedQuestionTypeError(type_tag)
        return strategy

    def is_supported(self, type_tag: str) -> bool:
        return type_tag in self._strategies

    def supported_types(self) -> list[str]:
        return sorted(self._strategies)


def build_default_registry() -> StrategyRegistry:
    registry = StrategyRegistry()
    for strategy in (SingleSelectStrategy(), MultiSelectStrategy()):
        registry.register(strategy.type_tag, strategy)
    return registry
