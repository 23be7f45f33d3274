"""Tests for the RandomizedTest engine."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from randqa import (
    Action,
    ConfigurationError,
    DetailedLogStrategy,
    EngineSettings,
    InvariantCheck,
    PhaseError,
    RandomizedTest,
    RunResult,
    SimpleLogStrategy,
    TestFailedError,
    UnknownPoolError,
    ViolationKind,
    ZeroProbabilityError,
    action,
    invariant,
)
from randqa.core.conditions import InvariantFailed, PostconditionFailed, precondition


class MixedModel(RandomizedTest):
    """Single phase: create and consume equally likely."""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("log_strategy", SimpleLogStrategy(1000))
        super().__init__(**kwargs)

    @action(produces="ints")
    def create(self) -> int:
        return self.random.randrange(100)

    @action(params="ints")
    def consume(self, value: int) -> None:
        self.postcondition(value >= 0)


class CountingInvariantModel(RandomizedTest):
    """Invariant check that fails on its 37th call."""

    def __init__(self, **kwargs) -> None:
        self.calls = 0
        self.failures: list[TestFailedError] = []
        super().__init__(**kwargs)

    @action(produces="ints")
    def create(self) -> int:
        return self.random.randrange(10)

    @invariant("ints")
    def counted(self, value: int) -> None:
        self.calls += 1
        self.invariant(self.calls != 37, "37th call")

    def examine_failure(self, failure: TestFailedError) -> None:
        self.failures.append(failure)


class TestRun:
    def test_returns_result(self):
        model = MixedModel(steps=50, seed=3)
        result = model.run()

        assert isinstance(result, RunResult)
        assert result.steps == 50
        assert result.seed == 3
        assert sum(result.action_counts.values()) == 50
        assert result.pool_sizes["ints"] == result.action_counts["create"]
        assert result.finished_at is not None

    def test_phases(self, ints_model):
        ints_model.run()
        assert ints_model.consumed == []
        assert len(ints_model.get_pool("ints")) == 5

        ints_model.set_phase(1)
        ints_model.steps = 10
        result = ints_model.run()

        assert len(ints_model.consumed) == 10
        assert result.action_counts == {"consume": 10}
        assert result.final_phase == 1
        assert set(ints_model.consumed) <= set(ints_model.get_pool("ints"))

    def test_pools_persist_across_runs(self, ints_model):
        ints_model.run()
        ints_model.run()
        assert ints_model.executed_steps == 5
        assert len(ints_model.get_pool("ints")) == 10

    def test_phase_switch_from_on_step(self):
        class Switching(MixedModel):
            @action(weights=(0, 1), params="ints", name="late")
            def late(self, value: int) -> None:
                pass

            def on_step(self, executed_steps: int) -> None:
                if executed_steps == 10:
                    self.set_phase(1)

        model = Switching(steps=30)
        result = model.run()
        assert result.action_counts["late"] == 20
        assert result.action_counts["create"] + result.action_counts["consume"] == 10

    def test_all_zero_phase_raises(self):
        class Stalls(RandomizedTest):
            @action(weights=(1, 0), produces="ints")
            def create(self) -> int:
                return 1

            @action(weights=(1,), params="ints")
            def use(self, value: int) -> None:
                pass

            def on_step(self, executed_steps: int) -> None:
                self.set_phase(1)

        with pytest.raises(ZeroProbabilityError, match="currentPhase=1"):
            Stalls(steps=5).run()


class TestStepCounting:
    def test_abandoned_steps_not_counted(self):
        class Picky(RandomizedTest):
            def __init__(self, **kwargs) -> None:
                self.seen: list[int] = []
                super().__init__(**kwargs)

            @action(produces="ints")
            def create(self) -> int:
                value = self.random.randrange(10)
                self.precondition(value % 2 == 0, "odd")
                return value

            def on_step(self, executed_steps: int) -> None:
                self.seen.append(executed_steps)

        model = Picky(steps=20, log_strategy=SimpleLogStrategy(100))
        result = model.run()

        assert model.seen == list(range(1, 21))
        assert len(model.log_strategy) == 20
        assert all(v % 2 == 0 for v in model.get_pool("ints"))
        assert result.abandoned == model.abandoned_steps > 0
        assert result.attempts == 20 + result.abandoned

    def test_on_step_sees_each_count(self):
        model = MixedModel(steps=5)
        with patch.object(model, "on_step") as on_step:
            model.run()
        assert [c.args for c in on_step.call_args_list] == [(1,), (2,), (3,), (4,), (5,)]

    def test_empty_pool_abandons(self):
        class Starved(RandomizedTest):
            @action(weights=(0, 1), produces="ints")
            def create(self) -> int:
                return 1

            @action(weights=(1, 0), params="ints")
            def consume(self, value: int) -> None:
                raise AssertionError("never called")

        model = Starved(steps=1)
        assert model.step() is False
        assert model.executed_steps == 0
        assert model.abandoned_steps == 1

    def test_precondition_abandon_skips_log_and_invariants(self):
        checked = []

        def refuse():
            precondition(False)

        model = RandomizedTest(
            actions=[Action(name="refuse", execute=refuse, produces="ints")],
            invariants=[InvariantCheck(name="seen", check=checked.append, pool="ints")],
            steps=1,
            log_strategy=SimpleLogStrategy(10),
        )
        for _ in range(5):
            assert model.step() is False
        assert checked == []
        assert len(model.log_strategy) == 0
        assert model.get_pool("ints") == []


class TestNewObjects:
    def test_filter_rejection_leaves_pools_unchanged(self):
        class Filtered(RandomizedTest):
            @action(produces=("a", "b"))
            def create(self) -> int:
                return self.random.randrange(100)

            def filter_new_object(self, pool_name, value):
                if pool_name == "b":
                    self.precondition(value % 2 == 0)
                return value

        model = Filtered(steps=30)
        model.run()

        a, b = model.get_pool("a"), model.get_pool("b")
        assert len(a) == len(b) == 30
        assert all(v % 2 == 0 for v in a)
        assert model.abandoned_steps > 0

    def test_filter_substitution(self):
        class Scaled(RandomizedTest):
            def __init__(self, **kwargs) -> None:
                self.checked: list[int] = []
                super().__init__(**kwargs)

            @action(produces="ints")
            def create(self) -> int:
                return self.random.randrange(1, 100)

            @invariant("ints")
            def record(self, value: int) -> None:
                self.checked.append(value)

            def filter_new_object(self, pool_name, value):
                return value * 10

        model = Scaled(steps=10, log_strategy=SimpleLogStrategy(10))
        model.run()

        pool = model.get_pool("ints")
        assert all(v % 10 == 0 for v in pool)
        assert model.checked == list(pool)
        raw = [entry.returned_value for entry in model.log_strategy.entries]
        assert [v * 10 for v in raw] == list(pool)

    def test_none_values_skip_invariants(self):
        class Sometimes(RandomizedTest):
            def __init__(self, **kwargs) -> None:
                self.checked: list[object] = []
                super().__init__(**kwargs)

            @action(produces="items")
            def create(self):
                value = self.random.randrange(3)
                return None if value == 0 else value

            @action(params="items")
            def touch(self, item):
                pass

            @invariant("items")
            def record(self, item) -> None:
                self.checked.append(item)

        model = Sometimes(steps=60)
        model.run()
        assert None in model.get_pool("items")
        assert None not in model.checked


class TestInvariants:
    def test_call_count_and_order(self):
        calls: list[tuple[str, int]] = []

        class Paired(RandomizedTest):
            @action(produces="ints")
            def create(self) -> int:
                return self.random.randrange(100)

            @action(params=("ints", "ints"))
            def pair(self, left: int, right: int) -> None:
                pass

            @invariant("ints")
            def inv1(self, value: int) -> None:
                calls.append(("inv1", value))

            @invariant("ints")
            def inv2(self, value: int) -> None:
                calls.append(("inv2", value))

        model = Paired(steps=40)
        result = model.run()

        creates = result.action_counts["create"]
        pairs = result.action_counts["pair"]
        assert len(calls) == 2 * (creates + 2 * pairs)
        assert all(name == "inv1" for name, _ in calls[0::2])
        assert all(name == "inv2" for name, _ in calls[1::2])
        assert [v for _, v in calls[0::2]] == [v for _, v in calls[1::2]]

    def test_failure_on_37th_call(self):
        model = CountingInvariantModel(steps=100)

        with pytest.raises(TestFailedError) as exc_info:
            model.run()

        error = exc_info.value
        assert model.executed_steps == 36
        assert error.step == 37
        assert error.kind is ViolationKind.INVARIANT
        assert "create" in error.message
        assert "counted" in error.message
        assert error.context.action_name == "create"
        assert error.context.pool_name == "ints"
        assert isinstance(error.cause, InvariantFailed)
        assert model.failures == [error]

    def test_ad_hoc_check(self, ints_model):
        ints_model.check_invariants(3, "ints")
        assert ints_model.checked == [3]

        with pytest.raises(TestFailedError) as exc_info:
            ints_model.check_invariants("three", "ints")
        error = exc_info.value
        assert error.kind is ViolationKind.INVARIANT
        assert "after action" not in error.message
        assert error.context.action_name == "non_negative"

    def test_ad_hoc_check_unknown_pool(self, ints_model):
        with pytest.raises(UnknownPoolError, match="typo"):
            ints_model.check_invariants(1, "typo")

    def test_check_that_raises_is_unexpected(self):
        def explode(value):
            raise ValueError("bad check")

        model = RandomizedTest(
            actions=[Action(name="create", execute=lambda: 1, produces="ints")],
            invariants=[InvariantCheck(name="explode", check=explode, pool="ints")],
            steps=5,
        )
        with pytest.raises(TestFailedError, match="caused an error") as exc_info:
            model.run()
        assert exc_info.value.kind is ViolationKind.UNEXPECTED
        assert isinstance(exc_info.value.cause, ValueError)

    def test_explicit_check_from_action(self):
        class Reaching(RandomizedTest):
            @action(produces="ints")
            def create(self) -> int:
                return 1

            @action(params="ints")
            def reach(self, value: int) -> None:
                self.check_invariants(-value, "ints")

            @invariant("ints")
            def positive(self, value: int) -> None:
                self.invariant(value > 0)

        with pytest.raises(TestFailedError) as exc_info:
            Reaching(steps=50).run()
        error = exc_info.value
        assert error.kind is ViolationKind.INVARIANT
        assert "after action 'reach'" in error.message
        assert error.context.action_name == "reach"


class TestActionFailures:
    def test_postcondition(self):
        class Broken(MixedModel):
            @action(params="ints")
            def consume(self, value: int) -> None:
                self.postcondition(False, "always broken")

        with pytest.raises(TestFailedError) as exc_info:
            Broken(steps=50).run()

        error = exc_info.value
        assert error.kind is ViolationKind.POSTCONDITION
        assert error.message.startswith("Failed postcondition while invoking action 'consume' with args: [")
        assert error.attempted.action_name == "consume"
        assert isinstance(error.cause, PostconditionFailed)
        assert error.__cause__ is error.cause
        assert "create()-->" in error.log_dump

    def test_unexpected_exception(self):
        class Crashing(MixedModel):
            @action(params="ints")
            def consume(self, value: int) -> None:
                {}[value]

        with pytest.raises(TestFailedError, match="for which no precondition failed") as exc_info:
            Crashing(steps=50).run()
        assert exc_info.value.kind is ViolationKind.UNEXPECTED
        assert isinstance(exc_info.value.cause, KeyError)

    def test_invariant_inside_action(self):
        class Inconsistent(MixedModel):
            @action(params="ints")
            def consume(self, value: int) -> None:
                self.invariant(False)

        with pytest.raises(TestFailedError, match="Failed invariant while invoking action 'consume'") as exc_info:
            Inconsistent(steps=50).run()
        assert exc_info.value.kind is ViolationKind.INVARIANT

    def test_preseeded_pool(self, ints_model):
        ints_model.get_pool("ints").append(-1)
        ints_model.set_phase(1)

        with pytest.raises(TestFailedError) as exc_info:
            ints_model.run()
        assert exc_info.value.kind is ViolationKind.POSTCONDITION
        assert exc_info.value.attempted.arguments == [-1]

    def test_log_dump_captured_at_failure(self):
        class Broken(MixedModel):
            @action(params="ints")
            def consume(self, value: int) -> None:
                self.postcondition(False)

        model = Broken(steps=50)
        with pytest.raises(TestFailedError) as exc_info:
            model.run()
        assert exc_info.value.log_dump == model.log_strategy.dump()
        assert exc_info.value.log_dump in str(exc_info.value)

    def test_step_reports_failure_to_hook(self):
        class Watched(MixedModel):
            def __init__(self, **kwargs) -> None:
                self.failures: list[TestFailedError] = []
                super().__init__(**kwargs)

            @action(params="ints")
            def consume(self, value: int) -> None:
                self.postcondition(False)

            def examine_failure(self, failure: TestFailedError) -> None:
                self.failures.append(failure)

        model = Watched(steps=1)
        with pytest.raises(TestFailedError) as exc_info:
            for _ in range(200):
                model.step()
        assert model.failures == [exc_info.value]


class TestPhases:
    def test_set_phase_rejects_negative(self, ints_model):
        with pytest.raises(PhaseError, match="cannot be negative"):
            ints_model.set_phase(-1)

    def test_set_phase_rejects_out_of_range(self, ints_model):
        with pytest.raises(PhaseError, match="non-existent phase"):
            ints_model.set_phase(2)

    def test_set_phase_rejects_non_int(self, ints_model):
        with pytest.raises(PhaseError):
            ints_model.set_phase("1")

    def test_phase_accessors(self, ints_model):
        assert ints_model.number_of_phases == 2
        ints_model.set_phase(1)
        assert ints_model.get_phase() == ints_model.phase == 1


class TestConfiguration:
    @pytest.mark.parametrize("steps", [0, -3, True, 2.5])
    def test_invalid_steps(self, steps):
        with pytest.raises(ConfigurationError, match="positive integer"):
            MixedModel(steps=steps)

    def test_bad_environment_is_configuration_error(self, monkeypatch):
        monkeypatch.setenv("RANDQA_STEPS", "zero")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            MixedModel()

    def test_undefined_pool(self):
        class Typo(RandomizedTest):
            @action(produces="ints")
            def create(self) -> int:
                return 1

            @action(params="intz")
            def use(self, value: int) -> None:
                pass

        with pytest.raises(UnknownPoolError, match="intz"):
            Typo()

    def test_explicit_registration(self):
        created = []

        def create():
            created.append(len(created))
            return created[-1]

        model = RandomizedTest(
            actions=[Action(name="create", execute=create, produces="ints")],
            invariants=[InvariantCheck(name="small", check=lambda v: None, pool="ints")],
            steps=10,
        )
        model.run()
        assert model.get_pool("ints") == list(range(10))
        assert model.get_pool_names() == frozenset({"ints"})

    def test_default_log_strategy(self):
        model = MixedModel(log_strategy=None)
        assert isinstance(model.log_strategy, SimpleLogStrategy)
        assert model.log_strategy.buffer_length == 20
        assert model.steps == 1000

    def test_settings_select_log_strategy(self):
        settings = EngineSettings(log_strategy="detailed", log_buffer=3, steps=7, seed=11)
        model = MixedModel(settings=settings, log_strategy=None)
        assert isinstance(model.log_strategy, DetailedLogStrategy)
        assert model.log_strategy.buffer_per_object == 3
        assert model.steps == 7
        assert model.seed == 11


class TestDeterminism:
    def test_same_seed_same_log(self):
        first, second = MixedModel(steps=100, seed=42), MixedModel(steps=100, seed=42)
        first.run()
        second.run()
        assert first.log_strategy.dump() == second.log_strategy.dump()
        assert list(first.get_pool("ints")) == list(second.get_pool("ints"))

    def test_different_seed_different_log(self):
        first, second = MixedModel(steps=100, seed=1), MixedModel(steps=100, seed=2)
        first.run()
        second.run()
        assert first.log_strategy.dump() != second.log_strategy.dump()
