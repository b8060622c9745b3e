import pytest

from exam_delivery.errors import UnsupportedQuestionTypeError
from exam_delivery.question_types import (
    MultiSelectStrategy,
    SingleSelectStrategy,
    StrategyRegistry,
    build_default_registry,
)


def test_default_registry_knows_both_types():
    registry = build_default_registry()
    assert registry.supported_types() == ["multi-select", "single-select"]
    assert isinstance(registry.get("single-select"), SingleSelectStrategy)
    assert isinstance(registry.get("multi-select"), MultiSelectStrategy)


def test_unknown_type_raises():
    registry = build_default_registry()
    assert registry.is_supported("essay") is False
    with pytest.raises(UnsupportedQuestionTypeError) as exc:
        registry.get("essay")
    assert exc.value.status_code == 400
    assert "essay" in exc.value.message


def test_registries_are_independent():
    empty = StrategyRegistry()
    empty.register("single-select", SingleSelectStrategy())
    assert empty.is_supported("multi-select") is False
    assert build_default_registry().is_supported("multi-select") is True
