"""Core data objects for RandQA.

This module contains the fundamental data structures:
- Action, InvariantCheck: What a randomized test is made of
- Pool, PoolSet: Named collections of test objects
- MethodInvocationLog, PooledObject: Invocation records
- ActionRegistry, InvariantRegistry: Validated registrations
- Success, PreconditionNotMet, ContractViolated: Invocation outcomes
- RunResult: Final output
"""

from randqa.core.action import Action, InvariantCheck
from randqa.core.conditions import (
    InvariantFailed,
    PostconditionFailed,
    PreconditionFailed,
    invariant,
    postcondition,
    precondition,
)
from randqa.core.log import MethodInvocationLog, PooledObject
from randqa.core.outcome import ContractViolated, PreconditionNotMet, Success, ViolationKind
from randqa.core.pool import Pool, PoolSet
from randqa.core.registry import ActionRegistry, InvariantRegistry
from randqa.core.result import RunResult

__all__ = [
    "Action",
    "InvariantCheck",
    "Pool",
    "PoolSet",
    "MethodInvocationLog",
    "PooledObject",
    "ActionRegistry",
    "InvariantRegistry",
    "Success",
    "PreconditionNotMet",
    "ContractViolated",
    "ViolationKind",
    "RunResult",
    "PreconditionFailed",
    "PostconditionFailed",
    "InvariantFailed",
    "precondition",
    "postcondition",
    "invariant",
]
