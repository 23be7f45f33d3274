"""Condition signals raised from inside action bodies.

Three signals share the same shape but mean very different things:

- ``PreconditionFailed``: the randomly chosen arguments do not apply to
  this action. The step is abandoned silently and not counted.
- ``PostconditionFailed``: the action broke its contract for an input
  that passed every precondition. This is a bug.
- ``InvariantFailed``: a pooled object is in an illegal state. This is a bug.

Example::

    @action(weights=(0, 1), params=("stacks", "ints"))
    def push(self, stack, value):
        precondition(not stack.is_full(), "stack is full")
        size = len(stack)
        stack.push(value)
        postcondition(len(stack) == size + 1, "size grows by one")
"""

from __future__ import annotations

from randqa.errors.base import ErrorCode, RandQAError


class ConditionSignal(RandQAError):
    """Base class for signals raised by condition helpers."""

    default_message = ""

    def __str__(self) -> str:
        return self.message


class PreconditionFailed(ConditionSignal):
    """The chosen arguments are not applicable. Not a bug."""

    error_code = ErrorCode.PRECONDITION_FAILED


class PostconditionFailed(ConditionSignal):
    """An action did not honour its contract."""

    error_code = ErrorCode.POSTCONDITION_FAILED


class InvariantFailed(ConditionSignal):
    """A pooled object violates its state invariant."""

    error_code = ErrorCode.INVARIANT_FAILED


def precondition(condition: bool, message: str = "") -> None:
    """Raise PreconditionFailed if ``condition`` is false."""
    if not condition:
        raise PreconditionFailed(message)


def postcondition(condition: bool, message: str = "") -> None:
    """Raise PostconditionFailed if ``condition`` is false."""
    if not condition:
        raise PostconditionFailed(message)


def invariant(condition: bool, message: str = "") -> None:
    """Raise InvariantFailed if ``condition`` is false."""
    if not condition:
        raise InvariantFailed(message)
