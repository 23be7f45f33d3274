"""RandQA - model-based randomized testing.

Register weighted actions that create, consume and check shared test
objects; RandQA picks actions at random, injects pooled objects as their
arguments and checks pre/postconditions and invariants until the step
budget runs out or a bug is found.

Example:
    from randqa import RandomizedTest, action, invariant

    class StackTest(RandomizedTest):
        @action(weights=(70, 0), produces="stacks")
        def new_stack(self):
            return BoundedStack(self.random.randrange(10))

        @action(weights=(30, 0), produces="ints")
        def new_int(self):
            return self.random.randrange(1000)

        @action(weights=(0, 1), params=("stacks", "ints"))
        def push(self, stack, value):
            self.precondition(not stack.is_full())
            size = len(stack)
            stack.push(value)
            self.postcondition(len(stack) == size + 1)

        @invariant("stacks")
        def consistent(self, stack):
            self.invariant(stack.is_empty() != (len(stack) > 0))

    StackTest(steps=1000).run()
"""

from randqa.agent import RandomizedTest
from randqa.agent.selector import WeightedSelector
from randqa.config import EngineSettings, load_settings
from randqa.core.action import Action, InvariantCheck
from randqa.core.conditions import (
    InvariantFailed,
    PostconditionFailed,
    PreconditionFailed,
    invariant as check_invariant,
    postcondition,
    precondition,
)
from randqa.core.log import MethodInvocationLog, PooledObject
from randqa.core.outcome import ContractViolated, PreconditionNotMet, Success, ViolationKind
from randqa.core.pool import Pool, PoolSet
from randqa.core.registry import ActionRegistry, InvariantRegistry
from randqa.core.result import RunResult
from randqa.dsl.decorators import action, invariant
from randqa.errors import (
    ConfigurationError,
    ErrorCode,
    PhaseError,
    RandQAError,
    RegistrationError,
    TestFailedError,
    UnknownPoolError,
    ZeroProbabilityError,
)
from randqa.logs import DetailedLogStrategy, LogStrategy, SimpleLogStrategy

__version__ = "0.1.0"

__all__ = [
    # Engine
    "RandomizedTest",
    "WeightedSelector",
    "RunResult",
    # Registration
    "Action",
    "InvariantCheck",
    "ActionRegistry",
    "InvariantRegistry",
    "action",
    "invariant",
    # Pools
    "Pool",
    "PoolSet",
    # Conditions
    "precondition",
    "postcondition",
    "check_invariant",
    "PreconditionFailed",
    "PostconditionFailed",
    "InvariantFailed",
    # Outcomes
    "Success",
    "PreconditionNotMet",
    "ContractViolated",
    "ViolationKind",
    # Logging
    "LogStrategy",
    "SimpleLogStrategy",
    "DetailedLogStrategy",
    "MethodInvocationLog",
    "PooledObject",
    # Config
    "EngineSettings",
    "load_settings",
    # Errors
    "RandQAError",
    "ErrorCode",
    "ConfigurationError",
    "RegistrationError",
    "UnknownPoolError",
    "PhaseError",
    "ZeroProbabilityError",
    "TestFailedError",
]
