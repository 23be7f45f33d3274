"""Tagged outcome of one invocation at the engine's fault boundary.

The engine never lets user exceptions drive its control flow directly.
Every call to an action or an invariant check goes through ``invoke()``,
which turns the raised condition into one of three values the step loop
can dispatch on:

- ``Success(value)``
- ``PreconditionNotMet(reason)``
- ``ContractViolated(kind, cause)``
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from randqa.core.conditions import InvariantFailed, PostconditionFailed, PreconditionFailed
from randqa.errors.base import TestFailedError


class ViolationKind(Enum):
    """Which contract a bug violated."""

    POSTCONDITION = "postcondition"
    INVARIANT = "invariant"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Success:
    value: Any = None


@dataclass(frozen=True)
class PreconditionNotMet:
    reason: str = ""
    signal: PreconditionFailed | None = None


@dataclass(frozen=True)
class ContractViolated:
    kind: ViolationKind
    cause: BaseException


Outcome = Union[Success, PreconditionNotMet, ContractViolated]


def classify(exc: BaseException) -> Outcome:
    """Map an exception raised by user code to an outcome."""
    if isinstance(exc, PreconditionFailed):
        return PreconditionNotMet(exc.message, exc)
    if isinstance(exc, PostconditionFailed):
        return ContractViolated(ViolationKind.POSTCONDITION, exc)
    if isinstance(exc, InvariantFailed):
        return ContractViolated(ViolationKind.INVARIANT, exc)
    return ContractViolated(ViolationKind.UNEXPECTED, exc)


def invoke(func: Callable[..., Any], args: Sequence[Any]) -> Outcome:
    """Call ``func(*args)`` and classify what happened.

    A TestFailedError raised from inside ``func`` (for example by an
    explicit ``check_invariants`` call) has already been classified and
    wrapped, so it is re-raised unchanged.
    """
    try:
        return Success(func(*args))
    except TestFailedError:
        raise
    except Exception as e:
        return classify(e)
