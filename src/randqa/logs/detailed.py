"""Per-object invocation history."""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable
from typing import Any

from randqa.core.log import MethodInvocationLog, PooledObject
from randqa.errors import ConfigurationError


class _IdentityKey:
    """Stands in for an unhashable object, keyed by identity."""

    __slots__ = ("obj",)

    def __init__(self, obj: Any) -> None:
        self.obj = obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _IdentityKey) and other.obj is self.obj

    def __repr__(self) -> str:
        return repr(self.obj)


def _key(obj: Any) -> Hashable:
    try:
        hash(obj)
    except TypeError:
        return _IdentityKey(obj)
    return obj


class DetailedLogStrategy:
    """Keeps a bounded history for every object seen as argument or result.

    Histories are grouped by pool name first, so two equal objects in two
    different pools get two separate queues. Within one pool, equal
    objects share one queue (unhashable objects fall back to identity).
    """

    def __init__(self, buffer_per_object: int = 10) -> None:
        if buffer_per_object < 0:
            raise ConfigurationError(f"Buffer length cannot be negative: {buffer_per_object}")
        self.buffer_per_object = buffer_per_object
        self._logs: dict[str, dict[Hashable, deque[MethodInvocationLog]]] = {}

    def append_log(self, record: MethodInvocationLog) -> None:
        for arg in record.args:
            self._object_log(arg).append(record)
        if record.returned_value is not None:
            for pool_name in record.target_pools:
                self._object_log(PooledObject(record.returned_value, pool_name)).append(record)

    def _object_log(self, pooled: PooledObject) -> deque[MethodInvocationLog]:
        by_object = self._logs.setdefault(pooled.pool_name, {})
        key = _key(pooled.object)
        entries = by_object.get(key)
        if entries is None:
            entries = deque(maxlen=self.buffer_per_object)
            by_object[key] = entries
        return entries

    def history(self, obj: Any, pool_name: str) -> list[MethodInvocationLog]:
        """The retained invocations that touched ``obj`` in ``pool_name``."""
        entries = self._logs.get(pool_name, {}).get(_key(obj))
        return list(entries) if entries is not None else []

    def dump(self) -> str:
        parts = []
        for pool_name, by_object in self._logs.items():
            objects = ", ".join(
                f"{key!r}=[{', '.join(str(e) for e in entries)}]" for key, entries in by_object.items()
            )
            parts.append(f"Pool:'{pool_name}'={{{objects}}}")
        return "[" + ", ".join(parts) + "]"
