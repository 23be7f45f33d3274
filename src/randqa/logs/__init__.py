"""Log strategies - how invocation history is kept for failure reports."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from randqa.core.log import MethodInvocationLog


@runtime_checkable
class LogStrategy(Protocol):
    """Protocol for invocation log strategies.

    The engine calls ``append_log`` once per completed step. ``dump`` is
    only called when a bug is found, to attach the recent history to the
    failure.
    """

    def append_log(self, record: MethodInvocationLog) -> None:
        """Record one completed invocation."""
        ...

    def dump(self) -> str:
        """Render the retained history as text."""
        ...


from randqa.logs.detailed import DetailedLogStrategy  # noqa: E402
from randqa.logs.simple import SimpleLogStrategy  # noqa: E402

__all__ = [
    "LogStrategy",
    "SimpleLogStrategy",
    "DetailedLogStrategy",
]
