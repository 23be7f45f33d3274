"""Pytest fixtures for RandQA tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from randqa import RandomizedTest, SimpleLogStrategy, action, invariant

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


class IntsModel(RandomizedTest):
    """Creator in phase 0, consumer in phase 1."""

    def __init__(self, **kwargs) -> None:
        self.consumed: list[int] = []
        self.checked: list[int] = []
        kwargs.setdefault("log_strategy", SimpleLogStrategy(1000))
        super().__init__(**kwargs)

    @action(weights=(10, 0), produces="ints")
    def create(self) -> int:
        return self.random.randrange(100)

    @action(weights=(0, 10), params="ints")
    def consume(self, value: int) -> None:
        self.consumed.append(value)
        self.postcondition(value >= 0, "value is non-negative")

    @invariant("ints")
    def non_negative(self, value: int) -> None:
        self.checked.append(value)
        self.invariant(isinstance(value, int))


@pytest.fixture
def ints_model() -> IntsModel:
    return IntsModel(steps=5)


@pytest.fixture
def stack_example() -> Path:
    return EXAMPLES_DIR / "stack_test.py"
