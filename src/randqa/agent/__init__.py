"""Agent module - the randomized test engine."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from random import Random
from typing import Any

from randqa.agent.selector import WeightedSelector
from randqa.config import EngineSettings, load_settings
from randqa.core import conditions
from randqa.core.action import Action, InvariantCheck
from randqa.core.log import MethodInvocationLog
from randqa.core.outcome import (
    ContractViolated,
    PreconditionNotMet,
    Success,
    ViolationKind,
    invoke,
)
from randqa.core.pool import Pool
from randqa.core.registry import ActionRegistry
from randqa.core.result import RunResult
from randqa.dsl.decorators import collect_declarations
from randqa.errors import ConfigurationError, ErrorContext, PhaseError, TestFailedError
from randqa.logs import LogStrategy

logger = logging.getLogger(__name__)

_ACTION_FAILURE_MESSAGES = {
    ViolationKind.POSTCONDITION: "Failed postcondition while invoking action '{name}' with args: {args}",
    ViolationKind.INVARIANT: "Failed invariant while invoking action '{name}' with args: {args}",
    ViolationKind.UNEXPECTED: (
        "Exception thrown while invoking action '{name}' with args: {args}, "
        "for which no precondition failed"
    ),
}


class RandomizedTest:
    """A model-based randomized test.

    The test repeatedly:
    1. Picks an action at random, weighted by the current phase
    2. Draws each argument from the action's declared pool
    3. Invokes the action
    4. Appends the returned value to the action's target pools
    5. Runs the invariant checks of every touched pool
    6. Records the invocation in the log strategy
    7. Calls on_step() with the number of counted steps

    until ``steps`` invocations have completed or a bug is found. An empty
    argument pool or a failed precondition abandons the attempt without
    counting it. A failed postcondition, a failed invariant or any other
    exception raises TestFailedError.

    Actions come from methods decorated with ``@action`` / ``@invariant``
    on a subclass, from the ``actions`` / ``invariants`` arguments, or both
    (declared methods first).

    Example::

        class IntsTest(RandomizedTest):
            @action(weights=(10, 0), produces="ints")
            def new_int(self):
                return self.random.randrange(100)

            @action(weights=(0, 10), params="ints")
            def check(self, value):
                self.postcondition(value >= 0)

            def on_step(self, executed_steps):
                if executed_steps == 5:
                    self.set_phase(1)

        IntsTest(steps=20).run()
    """

    def __init__(
        self,
        actions: Iterable[Action] | None = None,
        invariants: Iterable[InvariantCheck] | None = None,
        *,
        steps: int | None = None,
        log_strategy: LogStrategy | None = None,
        seed: int | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self.settings = settings or load_settings()

        steps = self.settings.steps if steps is None else steps
        if isinstance(steps, bool) or not isinstance(steps, int) or steps <= 0:
            raise ConfigurationError(f"Steps must be a positive integer, got {steps!r}")
        self.steps = steps

        self.seed = self.settings.seed if seed is None else seed
        # Shared by selection, argument draws and user actions; fixed seed
        # makes every run repeatable.
        self.random = Random(self.seed)

        self.log_strategy: LogStrategy = (
            log_strategy if log_strategy is not None else self.settings.build_log_strategy()
        )

        declared_actions, declared_checks = collect_declarations(self)
        self.registry = ActionRegistry(
            declared_actions + list(actions or []),
            declared_checks + list(invariants or []),
        )
        self.pools = self.registry.pools
        self.invariants = self.registry.invariants
        self._selector = WeightedSelector(self.registry.actions, self.registry.number_of_phases)

        self._phase = 0
        self._executed_steps = 0
        self._abandoned_steps = 0
        self._action_counts: Counter[str] = Counter()
        self._current: tuple[Action, list[Any]] | None = None

    # ── Run loop ──────────────────────────────────────────────────────────

    def run(self) -> RunResult:
        """Execute random steps until the step budget is exhausted.

        Returns:
            RunResult with step counts and final pool sizes.

        Raises:
            TestFailedError: on the first bug found, after examine_failure().
            ConfigurationError: if the active phase has only zero weights.
        """
        result = RunResult(seed=self.seed)
        self._executed_steps = 0
        self._abandoned_steps = 0
        self._action_counts.clear()

        logger.info(
            "Starting randomized run: steps=%d seed=%d actions=%d phases=%d",
            self.steps,
            self.seed,
            len(self.registry),
            self.number_of_phases,
        )

        while self._executed_steps < self.steps:
            self.step()

        result.steps = self._executed_steps
        result.abandoned = self._abandoned_steps
        result.final_phase = self._phase
        result.action_counts = Counter(self._action_counts)
        result.pool_sizes = self.pools.sizes()
        result.finish()

        logger.info(
            "Randomized run finished: %d steps, %d abandoned attempts in %.0fms",
            result.steps,
            result.abandoned,
            result.duration_ms,
        )
        return result

    def step(self) -> bool:
        """Attempt one step.

        Returns:
            True if the step completed and was counted, False if it was
            abandoned (empty argument pool or failed precondition).

        Raises:
            TestFailedError: if the step found a bug, after examine_failure().
        """
        try:
            return self._attempt()
        except TestFailedError as e:
            logger.error("Randomized run failed at step %s: %s", e.step, e.message)
            self.examine_failure(e)
            raise

    def _attempt(self) -> bool:
        action = self._selector.select(self._phase, self.random)

        args = self._resolve_args(action)
        if args is None:
            return self._abandon(action, "empty argument pool")

        self._current = (action, args)
        try:
            outcome = invoke(action.execute, args)

            if isinstance(outcome, PreconditionNotMet):
                return self._abandon(action, outcome.reason or "precondition failed")
            if isinstance(outcome, ContractViolated):
                raise self._action_failure(action, args, outcome)
            value = outcome.value

            inserted = self._insert_produced(action, value)
            if inserted is None:
                return self._abandon(action, "new object rejected by filter_new_object")

            for arg, pool_name in zip(args, action.params):
                if arg is not None:
                    self.check_invariants(arg, pool_name)
            for pool_name, obj in inserted:
                if obj is not None:
                    self.check_invariants(obj, pool_name)
        finally:
            self._current = None

        self.log_strategy.append_log(
            MethodInvocationLog.create(
                action.name,
                args,
                action.params,
                returned_value=value,
                target_pools=action.produces,
            )
        )
        self._executed_steps += 1
        self._action_counts[action.name] += 1
        logger.debug("Step %d: %s(%s)", self._executed_steps, action.name, args)

        self.on_step(self._executed_steps)
        return True

    def _resolve_args(self, action: Action) -> list[Any] | None:
        """Draw one argument per param from its pool, or None if one is empty."""
        args = []
        for pool_name in action.params:
            pool = self.pools.get(pool_name)
            if not pool:
                return None
            args.append(pool.draw(self.random))
        return args

    def _insert_produced(self, action: Action, value: Any) -> list[tuple[str, Any]] | None:
        """Filter and append a produced value to every target pool.

        Every filter runs before any pool is touched, so a rejection
        leaves all pools unchanged. Returns the (pool, inserted value)
        pairs, or None if a filter rejected the value.
        """
        filtered = []
        for pool_name in action.produces:
            try:
                filtered.append((pool_name, self.filter_new_object(pool_name, value)))
            except conditions.PreconditionFailed:
                return None
        for pool_name, obj in filtered:
            self.pools.get(pool_name).append(obj)
        return filtered

    def _abandon(self, action: Action, reason: str) -> bool:
        self._abandoned_steps += 1
        logger.debug("Abandoned '%s': %s", action.name, reason)
        return False

    # ── Invariants ────────────────────────────────────────────────────────

    def check_invariants(self, obj: Any, pool_name: str) -> None:
        """Run every invariant check registered on ``pool_name`` against ``obj``.

        Called automatically for each argument and each produced value of
        a completed step. Actions may call it for objects they reached by
        other means.

        Raises:
            UnknownPoolError: if ``pool_name`` is not a pool of this test.
            TestFailedError: if a check fails or raises.
        """
        for check in self.invariants.for_pool(pool_name):
            outcome = invoke(check.check, (obj,))
            if isinstance(outcome, Success):
                continue
            raise self._invariant_failure(check, obj, pool_name, outcome)

    # ── Failures ──────────────────────────────────────────────────────────

    def _action_failure(self, action: Action, args: list[Any], outcome: ContractViolated) -> TestFailedError:
        message = _ACTION_FAILURE_MESSAGES[outcome.kind].format(name=action.name, args=args)
        attempted = MethodInvocationLog.create(action.name, args, action.params)
        return self._failure(message, outcome.kind, attempted, outcome.cause, action.name)

    def _invariant_failure(
        self,
        check: InvariantCheck,
        obj: Any,
        pool_name: str,
        outcome: ContractViolated | PreconditionNotMet,
    ) -> TestFailedError:
        if isinstance(outcome, ContractViolated) and outcome.kind is ViolationKind.INVARIANT:
            kind = ViolationKind.INVARIANT
            message = f"Failed invariant while invoking check '{check.name}' with argument: {obj!r}"
        else:
            kind = ViolationKind.UNEXPECTED
            message = f"Invariant check '{check.name}' caused an error with argument: {obj!r}"
        if isinstance(outcome, ContractViolated):
            cause: BaseException = outcome.cause
        else:
            cause = outcome.signal or conditions.PreconditionFailed(outcome.reason)

        action_name = check.name
        if self._current is not None:
            action, args = self._current
            action_name = action.name
            message += f" (pool '{pool_name}'), after action '{action.name}' with args: {args}"

        attempted = MethodInvocationLog.create(check.name, [obj], [pool_name])
        return self._failure(message, kind, attempted, cause, action_name, pool_name)

    def _failure(
        self,
        message: str,
        kind: ViolationKind,
        attempted: MethodInvocationLog,
        cause: BaseException,
        action_name: str,
        pool_name: str | None = None,
    ) -> TestFailedError:
        step = self._executed_steps + 1
        return TestFailedError(
            message,
            kind=kind,
            attempted=attempted,
            cause=cause,
            log_strategy=self.log_strategy,
            step=step,
            context=ErrorContext(
                action_name=action_name,
                pool_name=pool_name,
                phase=self._phase,
                step=step,
            ),
        )

    # ── Hooks ─────────────────────────────────────────────────────────────

    def on_step(self, executed_steps: int) -> None:
        """Called after every counted step. Override to change phases."""

    def filter_new_object(self, pool_name: str, value: Any) -> Any:
        """Called before a produced value is added to ``pool_name``.

        Whatever is returned is added instead. Raise PreconditionFailed
        (e.g. via ``self.precondition``) to reject the value and abandon
        the step.
        """
        return value

    def examine_failure(self, failure: TestFailedError) -> None:
        """Called with the failure just before it propagates out of step() and run()."""

    # ── Phases ────────────────────────────────────────────────────────────

    def set_phase(self, phase: int) -> None:
        """Switch phase; takes effect from the next selection.

        Raises:
            PhaseError: if ``phase`` is negative or not below number_of_phases.
        """
        if isinstance(phase, bool) or not isinstance(phase, int):
            raise PhaseError(f"Phase must be an integer, got {phase!r}")
        if phase < 0:
            raise PhaseError("Phase cannot be negative", phase=phase)
        if phase >= self.number_of_phases:
            raise PhaseError(
                f"Specified non-existent phase index: {phase}, total phases={self.number_of_phases}",
                phase=phase,
            )
        if phase != self._phase:
            logger.info("Switching to phase %d after %d steps", phase, self._executed_steps)
        self._phase = phase

    def get_phase(self) -> int:
        return self._phase

    @property
    def phase(self) -> int:
        """The current phase."""
        return self._phase

    @property
    def number_of_phases(self) -> int:
        return self.registry.number_of_phases

    # ── Queries ───────────────────────────────────────────────────────────

    def get_pool(self, name: str) -> Pool:
        """The live pool named ``name``; may be modified (e.g. pre-seeded)."""
        return self.pools.get(name)

    def get_pool_names(self) -> frozenset[str]:
        return self.pools.names

    @property
    def executed_steps(self) -> int:
        """Number of counted steps so far."""
        return self._executed_steps

    @property
    def abandoned_steps(self) -> int:
        """Number of abandoned attempts so far."""
        return self._abandoned_steps

    @property
    def action_counts(self) -> Counter[str]:
        return Counter(self._action_counts)

    # ── Condition helpers ─────────────────────────────────────────────────

    def precondition(self, condition: bool, message: str = "") -> None:
        conditions.precondition(condition, message)

    def postcondition(self, condition: bool, message: str = "") -> None:
        conditions.postcondition(condition, message)

    def invariant(self, condition: bool, message: str = "") -> None:
        conditions.invariant(condition, message)


__all__ = [
    "RandomizedTest",
    "WeightedSelector",
]
