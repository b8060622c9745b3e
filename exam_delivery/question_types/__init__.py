"""Question type strategies and the registry that maps tags to them."""

from exam_delivery.question_types.base import QuestionTypeStrategy
from exam_delivery.question_types.multi_select import MultiSelectStrategy
from exam_delivery.question_types.registry import StrategyRegistry, build_default_registry
from exam_delivery.question_types.single_select import SingleSelectStrategy

__all__ = [
    "MultiSelectStrategy",
    "QuestionTypeStrategy",
    "SingleSelectStrategy",
    "StrategyRegistry",
    "build_default_registry",
]
