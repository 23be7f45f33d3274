"""Exception hierarchy for RandQA.

RandQA distinguishes three families of errors:

- Configuration errors: the test was wired incorrectly (unknown pool,
  bad arity, zero-probability phase, ...). Raised at construction or at
  the offending call, never retried.
- Condition signals: raised by user code through ``precondition()``,
  ``postcondition()`` and ``invariant()``. A failed precondition only
  means the random arguments were not applicable; the other two are bugs.
- Test failures: a bug found by the engine, wrapped with the action, its
  arguments, the cause and a dump of the invocation history.

All RandQA errors inherit from RandQAError and include:
- error_code: A unique ErrorCode enum for categorization
- context: ErrorContext with action/pool/phase/step details
- suggestions: List of actionable steps to resolve the issue

Example:
    try:
        test.run()
    except TestFailedError as e:
        print(f"Error: {e}")
        print(e.log_dump)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from randqa.core.log import MethodInvocationLog
    from randqa.core.outcome import ViolationKind
    from randqa.logs import LogStrategy


class ErrorCode(Enum):
    """Standardized error codes for RandQA.

    Error codes are organized by category:
    - E2xx: Configuration errors
    - E3xx: Condition signals raised by user code
    - E4xx: Test failures (bugs found by a run)
    - E9xx: Unknown/internal errors
    """

    # Configuration errors (E2xx)
    INVALID_CONFIG = "E201"
    INVALID_REGISTRATION = "E202"
    UNKNOWN_POOL = "E203"
    INVALID_PHASE = "E204"
    ZERO_PROBABILITY = "E205"

    # Condition signals (E3xx)
    PRECONDITION_FAILED = "E301"
    POSTCONDITION_FAILED = "E302"
    INVARIANT_FAILED = "E303"

    # Test failures (E4xx)
    TEST_FAILED = "E401"

    # Unknown/internal errors (E9xx)
    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if 200 <= code_num < 300:
            return "configuration"
        elif code_num < 400:
            return "condition"
        elif code_num < 500:
            return "failure"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Structured context for error logging and debugging.

    Attributes:
        action_name: Name of the action being registered or executed
        pool_name: Name of the object pool involved
        phase: Phase active when the error occurred
        step: 1-based number of the step being attempted
        extra: Additional context-specific information
        timestamp: When the error occurred
    """

    action_name: str | None = None
    pool_name: str | None = None
    phase: int | None = None
    step: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "action_name": self.action_name,
            "pool_name": self.pool_name,
            "phase": self.phase,
            "step": self.step,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.action_name:
            parts.append(f"action={self.action_name}")
        if self.pool_name:
            parts.append(f"pool={self.pool_name}")
        if self.phase is not None:
            parts.append(f"phase={self.phase}")
        if self.step is not None:
            parts.append(f"step={self.step}")
        return " > ".join(parts) if parts else "unknown location"


class RandQAError(Exception):
    """Base exception for all RandQA errors.

    Attributes:
        error_code: Unique ErrorCode for this error type
        message: Human-readable error description
        context: ErrorContext with execution details
        suggestions: List of actionable steps to resolve the issue
        cause: The underlying exception (if any)
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        for key in ("action_name", "pool_name", "phase", "step"):
            if key in extra_context:
                setattr(self.context, key, extra_context.pop(key))
        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [
            f"Error [{self.error_code.value}]: {self.message}",
            "",
        ]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.cause is not None:
            lines.append(f"Cause: {self.cause!r}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": repr(self.cause) if self.cause else None,
        }


class ConfigurationError(RandQAError, ValueError):
    """The randomized test is wired incorrectly.

    Raised while registering actions, when an unknown pool is referenced,
    when a phase is out of range, or when the active phase gives every
    action a zero weight. These errors are never retried.
    """

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid randomized test configuration"
    default_suggestions = [
        "Check the weights, params and produces declared for each action",
        "Run 'randqa validate <file>' to list actions, pools and phases",
    ]


class RegistrationError(ConfigurationError):
    """An action or invariant declaration is invalid."""

    error_code = ErrorCode.INVALID_REGISTRATION
    default_message = "Invalid action registration"


class UnknownPoolError(ConfigurationError, KeyError):
    """A pool name does not match any pool created by a producer action."""

    error_code = ErrorCode.UNKNOWN_POOL
    default_message = "Unknown object pool"
    default_suggestions = [
        "Every pool must be listed in the 'produces' of at least one action",
        "Check the pool name for typos",
    ]

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return RandQAError.__str__(self)


class PhaseError(ConfigurationError):
    """A phase index is outside ``[0, number_of_phases)``."""

    error_code = ErrorCode.INVALID_PHASE
    default_message = "Invalid phase"


class ZeroProbabilityError(ConfigurationError):
    """Every action has a zero weight in the active phase."""

    error_code = ErrorCode.ZERO_PROBABILITY
    default_message = "All action weights are zero in the current phase"
    default_suggestions = [
        "Give at least one action a positive weight in every reachable phase",
        "Check the phase switched to in on_step()",
    ]


class TestFailedError(RandQAError, AssertionError):
    """A bug found by a randomized run.

    Raised when an action violates a postcondition, an invariant check
    fails, or an action raises an unexpected exception although its
    preconditions held. Carries everything needed to reproduce it.
    """

    __test__ = False  # keep pytest from collecting this class

    error_code = ErrorCode.TEST_FAILED
    default_message = "Randomized test failed"

    def __init__(
        self,
        message: str,
        kind: ViolationKind,
        attempted: MethodInvocationLog,
        cause: BaseException,
        log_strategy: LogStrategy | None,
        step: int | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        self.kind = kind
        self.attempted = attempted
        self.log_strategy = log_strategy
        self.step = step
        self.log_dump = log_strategy.dump() if log_strategy is not None else "null"
        super().__init__(message=message, context=context, cause=cause)
        self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.message}, log={self.log_dump}, cause={self.cause!r}"
