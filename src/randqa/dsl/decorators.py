"""Decorators for declaring actions and invariant checks as methods.

Example:
    class StackTest(RandomizedTest):
        @action(weights=(70, 0), produces="stacks")
        def new_stack(self):
            return BoundedStack(self.random.randrange(10))

        @action(weights=(0, 1), params=("stacks", "ints"))
        def push(self, stack, value):
            self.precondition(not stack.is_full())
            stack.push(value)

        @invariant("stacks")
        def stack_consistent(self, stack):
            self.invariant(stack.is_empty() != (len(stack) > 0))
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from randqa.core.action import Action, InvariantCheck

F = TypeVar("F", bound=Callable[..., Any])

ACTION_ATTR = "__randqa_action__"
INVARIANT_ATTR = "__randqa_invariant__"


@dataclass(frozen=True)
class ActionDeclaration:
    name: str | None
    weights: float | Sequence[float]
    params: str | Sequence[str]
    produces: str | Sequence[str]
    description: str


@dataclass(frozen=True)
class InvariantDeclaration:
    name: str | None
    pool: str
    description: str


def action(
    weights: float | Sequence[float] = 1.0,
    params: str | Sequence[str] = (),
    produces: str | Sequence[str] = (),
    name: str | None = None,
    description: str = "",
) -> Callable[[F], F]:
    """Mark a method as a randomized test action.

    The function is returned unchanged (still directly callable); the
    declaration is read when the test is constructed.
    """

    def decorator(func: F) -> F:
        setattr(
            func,
            ACTION_ATTR,
            ActionDeclaration(
                name=name,
                weights=weights,
                params=params,
                produces=produces,
                description=description or func.__doc__ or "",
            ),
        )
        return func

    return decorator


def invariant(pool: str, name: str | None = None, description: str = "") -> Callable[[F], F]:
    """Mark a one-argument method as an invariant check for ``pool``."""

    def decorator(func: F) -> F:
        setattr(
            func,
            INVARIANT_ATTR,
            InvariantDeclaration(name=name, pool=pool, description=description or func.__doc__ or ""),
        )
        return func

    return decorator


def _declared_members(owner: object) -> dict[str, Any]:
    """Decorated attribute names of ``owner``'s class, base classes first.

    A subclass that overrides a decorated method without re-decorating it
    removes the declaration.
    """
    found: dict[str, Any] = {}
    for cls in reversed(type(owner).__mro__):
        for attr, value in vars(cls).items():
            func = getattr(value, "__func__", value)
            if hasattr(func, ACTION_ATTR) or hasattr(func, INVARIANT_ATTR):
                found[attr] = func
            elif attr in found:
                del found[attr]
    return found


def collect_declarations(owner: object) -> tuple[list[Action], list[InvariantCheck]]:
    """Build Action and InvariantCheck descriptors from decorated methods.

    Order is stable: base classes first, then definition order within a
    class. That order becomes the selector's iteration order.
    """
    actions: list[Action] = []
    checks: list[InvariantCheck] = []
    for attr, func in _declared_members(owner).items():
        bound = getattr(owner, attr)
        action_decl: ActionDeclaration | None = getattr(func, ACTION_ATTR, None)
        if action_decl is not None:
            actions.append(
                Action(
                    name=action_decl.name or attr,
                    execute=bound,
                    weights=action_decl.weights,
                    params=action_decl.params,
                    produces=action_decl.produces,
                    description=action_decl.description,
                )
            )
        invariant_decl: InvariantDeclaration | None = getattr(func, INVARIANT_ATTR, None)
        if invariant_decl is not None:
            checks.append(
                InvariantCheck(
                    name=invariant_decl.name or attr,
                    check=bound,
                    pool=invariant_decl.pool,
                    description=invariant_decl.description,
                )
            )
    return actions, checks
