"""Records of completed invocations, handed to a LogStrategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PooledObject:
    """An object together with the pool it was drawn from or added to."""

    object: Any
    pool_name: str

    def __str__(self) -> str:
        return str(self.object)


@dataclass(frozen=True)
class MethodInvocationLog:
    """One invocation: which action ran, on what, and what it returned.

    Attributes:
        action_name: Name of the action or invariant check invoked.
        args: Arguments with the pool each one came from.
        returned_value: The value returned (None if nothing).
        target_pools: Pools the returned value was appended to.
    """

    action_name: str
    args: tuple[PooledObject, ...] = ()
    returned_value: Any = None
    target_pools: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        action_name: str,
        args: list[Any] | tuple[Any, ...],
        pool_names: list[str] | tuple[str, ...],
        returned_value: Any = None,
        target_pools: list[str] | tuple[str, ...] = (),
    ) -> MethodInvocationLog:
        """Pair each argument with its source pool and build the record."""
        pooled = tuple(PooledObject(arg, pool) for arg, pool in zip(args, pool_names, strict=True))
        return cls(
            action_name=action_name,
            args=pooled,
            returned_value=returned_value,
            target_pools=tuple(target_pools),
        )

    @property
    def arguments(self) -> list[Any]:
        """The raw argument values, in call order."""
        return [p.object for p in self.args]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.action_name}({args})-->{self.returned_value}"

    def __repr__(self) -> str:
        return str(self)
