"""RandQA error hierarchy."""

from randqa.errors.base import (
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    PhaseError,
    RandQAError,
    RegistrationError,
    TestFailedError,
    UnknownPoolError,
    ZeroProbabilityError,
)

__all__ = [
    "RandQAError",
    "ErrorCode",
    "ErrorContext",
    # Configuration errors
    "ConfigurationError",
    "RegistrationError",
    "UnknownPoolError",
    "PhaseError",
    "ZeroProbabilityError",
    # Failures
    "TestFailedError",
]
