"""Declarative registration of actions and invariant checks."""

from randqa.dsl.decorators import action, collect_declarations, invariant

__all__ = ["action", "invariant", "collect_declarations"]
