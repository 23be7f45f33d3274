"""Action and InvariantCheck descriptors."""

from __future__ import annotations

import inspect
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from randqa.errors import RegistrationError


@dataclass(frozen=True)
class Arity:
    """How many positional arguments a callable accepts."""

    required: int
    maximum: int | None  # None when the callable takes *args

    def accepts(self, count: int) -> bool:
        """Every positional parameter must be filled; ``*args`` takes any extra."""
        if self.maximum is None:
            return count >= self.required
        return count == self.maximum

    def __str__(self) -> str:
        if self.maximum is None:
            return f"at least {self.required}"
        return str(self.maximum)


def inspect_arity(func: Callable[..., Any]) -> Arity:
    """Count the positional parameters of ``func``.

    Bound methods do not count ``self``. Keyword-only parameters and
    ``**kwargs`` are ignored since the engine only passes positionals.
    """
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError):
        # Can't inspect (e.g., built-in), accept anything
        return Arity(0, None)

    required = 0
    maximum: int | None = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            maximum = None
        elif param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            if param.default is inspect.Parameter.empty:
                required += 1
            if maximum is not None:
                maximum += 1
    return Arity(required, maximum)


def returns_none(func: Callable[..., Any]) -> bool:
    """True if ``func`` is annotated as returning ``None``."""
    try:
        annotation = inspect.signature(func).return_annotation
    except (ValueError, TypeError):
        return False
    return annotation is None or annotation == "None"


def _normalize_weights(weights: float | Sequence[float]) -> tuple[float, ...]:
    if isinstance(weights, (int, float)):
        return (float(weights),)
    return tuple(float(w) for w in weights)


def _normalize_names(names: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(names, str):
        return (names,)
    return tuple(names)


@dataclass
class Action:
    """A weighted unit of test behaviour.

    ``weights[i]`` is the relative probability of picking this action in
    phase ``i``; phases past the end of the tuple weigh zero. ``params``
    names the pool each positional argument is drawn from, and the
    returned value is appended to every pool in ``produces``.

    Example::

        Action(
            name="new_stack",
            execute=lambda: BoundedStack(rng.randrange(10)),
            weights=(70, 0),
            produces=("stacks",),
        )

        Action(
            name="push",
            execute=push,
            weights=(0, 1),
            params=("stacks", "ints"),
        )
    """

    name: str
    execute: Callable[..., Any]
    weights: tuple[float, ...] = (1.0,)
    params: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    description: str = ""
    arity: Arity = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.weights = _normalize_weights(self.weights)
        self.params = _normalize_names(self.params)
        self.produces = _normalize_names(self.produces)
        self.arity = inspect_arity(self.execute)

        for w in self.weights:
            if not math.isfinite(w) or w < 0:
                raise RegistrationError(
                    f"Illegal weight {w} for action '{self.name}': weights must be finite and >= 0",
                    action_name=self.name,
                )

    def weight(self, phase: int) -> float:
        """Weight of this action in ``phase`` (0 past the declared phases)."""
        if phase < len(self.weights):
            return self.weights[phase]
        return 0.0

    @property
    def is_producer(self) -> bool:
        return bool(self.produces)

    @property
    def phase_count(self) -> int:
        return len(self.weights)

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        return self.name == other.name


@dataclass
class InvariantCheck:
    """A one-argument check run against every touched object of a pool.

    Example::

        InvariantCheck(
            name="stack_size_consistent",
            check=lambda s: invariant(s.is_empty() != (len(s) > 0)),
            pool="stacks",
        )
    """

    name: str
    check: Callable[[Any], Any]
    pool: str
    description: str = ""
    arity: Arity = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.arity = inspect_arity(self.check)

    def __hash__(self) -> int:
        return hash((self.name, self.pool))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvariantCheck):
            return NotImplemented
        return self.name == other.name and self.pool == other.pool
