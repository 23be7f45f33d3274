"""Named object pools."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from random import Random
from typing import Any

from randqa.errors import UnknownPoolError


class Pool(list):
    """An ordered, mutable collection of test objects.

    Duplicates and insertion order both matter: arguments are drawn by
    uniform-random index, never by identity. A Pool is a plain list so
    tests can pre-seed or inspect it directly.
    """

    def __init__(self, name: str, items: Iterable[Any] = ()) -> None:
        super().__init__(items)
        self.name = name

    def draw(self, rng: Random) -> Any:
        """Pick one member uniformly at random. The pool must not be empty."""
        return self[rng.randrange(len(self))]

    def __repr__(self) -> str:
        return f"Pool({self.name!r}, {list.__repr__(self)})"


class PoolSet:
    """The fixed set of pools of one randomized test.

    Pools are created once, from the ``produces`` declarations of the
    registered actions. Looking up a name that was never declared raises
    UnknownPoolError instead of creating a pool on the fly.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._pools: dict[str, Pool] = {}
        for name in names:
            if name not in self._pools:
                self._pools[name] = Pool(name)

    def get(self, name: str) -> Pool:
        try:
            return self._pools[name]
        except KeyError:
            raise UnknownPoolError(
                f"Invalid pool name: '{name}', legal values={sorted(self._pools)}",
                pool_name=name,
            ) from None

    def __getitem__(self, name: str) -> Pool:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._pools

    def __iter__(self) -> Iterator[Pool]:
        return iter(self._pools.values())

    def __len__(self) -> int:
        return len(self._pools)

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._pools)

    def sizes(self) -> dict[str, int]:
        return {name: len(pool) for name, pool in self._pools.items()}
