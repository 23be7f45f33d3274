"""Validated registries of actions and invariant checks.

All configuration checks happen here, once, before any random step runs:

1. A producer must be able to return a value.
2. An action's ``params`` must match its positional arity.
3. Every pool referenced by ``params`` or by an invariant must be
   populated by some producer.
4. A callable cannot be both an action and an invariant check.
5. An invariant check takes exactly one argument.
6. At least one action is registered, and at least one producer takes
   no parameters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from randqa.core.action import Action, InvariantCheck, returns_none
from randqa.core.pool import PoolSet
from randqa.errors import RegistrationError, UnknownPoolError

logger = logging.getLogger(__name__)


def _same_callable(a: object, b: object) -> bool:
    # Bound methods compare equal when they wrap the same function and instance
    return a is b or a == b


class InvariantRegistry:
    """Maps each pool name to the ordered invariant checks registered on it."""

    def __init__(self, pool_names: Iterable[str]) -> None:
        self._checks: dict[str, list[InvariantCheck]] = {name: [] for name in pool_names}

    def register(self, check: InvariantCheck) -> None:
        if check.pool not in self._checks:
            raise UnknownPoolError(
                f"Invariant check '{check.name}' has an invalid object pool name: '{check.pool}'",
                action_name=check.name,
                pool_name=check.pool,
            )
        if not check.arity.accepts(1):
            raise RegistrationError(
                f"Invariant check '{check.name}' must take exactly one parameter, takes {check.arity}",
                action_name=check.name,
            )
        self._checks[check.pool].append(check)

    def for_pool(self, pool_name: str) -> list[InvariantCheck]:
        """Checks registered on ``pool_name``, in registration order."""
        try:
            return self._checks[pool_name]
        except KeyError:
            raise UnknownPoolError(
                f"Invalid pool name defined: '{pool_name}', legal values={sorted(self._checks)}",
                pool_name=pool_name,
            ) from None

    def __contains__(self, pool_name: object) -> bool:
        return pool_name in self._checks

    def __len__(self) -> int:
        return sum(len(checks) for checks in self._checks.values())


class ActionRegistry:
    """The validated, static description of every action in a test.

    Building a registry also builds the PoolSet (one pool per name in any
    ``produces``) and the InvariantRegistry. Any inconsistency raises a
    ConfigurationError subclass immediately.
    """

    def __init__(
        self,
        actions: Iterable[Action],
        invariants: Iterable[InvariantCheck] = (),
    ) -> None:
        self._actions: list[Action] = list(actions)
        invariant_list = list(invariants)

        self._check_unique_names()
        self.pools = self._build_pools()
        self.invariants = self._build_invariants(invariant_list)
        self._validate_actions()

        self.number_of_phases = max((a.phase_count for a in self._actions), default=0)
        if self.number_of_phases == 0:
            raise RegistrationError("No action declares a weight for any phase")

        logger.debug(
            "Registered %d actions, %d invariant checks, pools=%s, phases=%d",
            len(self._actions),
            len(self.invariants),
            sorted(self.pools.names),
            self.number_of_phases,
        )

    def _check_unique_names(self) -> None:
        if not self._actions:
            raise RegistrationError(
                "No test action found",
                suggestions=["Register at least one Action, or decorate a method with @action"],
            )
        seen: set[str] = set()
        for a in self._actions:
            if a.name in seen:
                raise RegistrationError(f"Duplicate action name: '{a.name}'", action_name=a.name)
            seen.add(a.name)

    def _build_pools(self) -> PoolSet:
        names: list[str] = []
        for a in self._actions:
            if not a.produces:
                continue
            if returns_none(a.execute):
                raise RegistrationError(
                    f"Action '{a.name}' declares produces={list(a.produces)} "
                    "but is annotated as returning None",
                    action_name=a.name,
                )
            names.extend(a.produces)
        return PoolSet(names)

    def _build_invariants(self, checks: list[InvariantCheck]) -> InvariantRegistry:
        registry = InvariantRegistry(self.pools.names)
        for check in checks:
            for a in self._actions:
                if _same_callable(a.execute, check.check):
                    raise RegistrationError(
                        "Illegal combination: an invariant check cannot also be an "
                        f"action ('{a.name}' / '{check.name}')",
                        action_name=a.name,
                    )
            registry.register(check)
        return registry

    def _validate_actions(self) -> None:
        for a in self._actions:
            if not a.arity.accepts(len(a.params)):
                if not a.params:
                    message = (
                        f"Misconfigured action '{a.name}': it accepts arguments but declares "
                        "no params. Declare the object pool each argument is drawn from"
                    )
                else:
                    message = (
                        f"Illegal number of params for action '{a.name}': was {len(a.params)}, "
                        f"action needs {a.arity} parameters"
                    )
                raise RegistrationError(message, action_name=a.name)
            for pool_name in a.params:
                if pool_name not in self.pools:
                    raise UnknownPoolError(
                        f"Undefined pool name in params: '{pool_name}', declared in action: '{a.name}'",
                        action_name=a.name,
                        pool_name=pool_name,
                    )

        if not any(a.is_producer and not a.params for a in self._actions):
            raise RegistrationError(
                "At least one producer action taking no parameters is required",
                suggestions=["Add an action with produces=(...) and no params to seed the pools"],
            )

    @property
    def actions(self) -> list[Action]:
        """Registered actions, in registration order."""
        return list(self._actions)

    def get(self, name: str) -> Action | None:
        for a in self._actions:
            if a.name == name:
                return a
        return None

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)
