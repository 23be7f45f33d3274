"""A single bounded buffer of recent invocations."""

from __future__ import annotations

from collections import deque

from randqa.core.log import MethodInvocationLog
from randqa.errors import ConfigurationError


class SimpleLogStrategy:
    """Keeps the last ``buffer_length`` invocations, oldest first.

    When the buffer is full, each new entry evicts the earliest one.
    """

    def __init__(self, buffer_length: int = 20) -> None:
        if buffer_length < 0:
            raise ConfigurationError(f"Buffer length cannot be negative: {buffer_length}")
        self.buffer_length = buffer_length
        self._log: deque[MethodInvocationLog] = deque(maxlen=buffer_length)

    def append_log(self, record: MethodInvocationLog) -> None:
        self._log.append(record)

    @property
    def entries(self) -> list[MethodInvocationLog]:
        return list(self._log)

    def dump(self) -> str:
        return "[" + ", ".join(str(entry) for entry in self._log) + "]"

    def __len__(self) -> int:
        return len(self._log)
