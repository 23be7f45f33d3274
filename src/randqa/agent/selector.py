"""Weighted random action selection."""

from __future__ import annotations

import logging
from random import Random

from randqa.core.action import Action
from randqa.errors import ZeroProbabilityError

logger = logging.getLogger(__name__)


class WeightedSelector:
    """Picks one action per step by cumulative-weight sampling.

    Each phase gets its own table of the actions with a positive weight in
    that phase, built once in registration order. A draw uses exactly one ``rng.random()`` call and
    never looks at pool contents, so a fixed seed replays the same
    sequence of actions.
    """

    def __init__(self, actions: list[Action], number_of_phases: int) -> None:
        self._tables: list[list[tuple[Action, float]]] = []
        self._totals: list[float] = []
        for phase in range(number_of_phases):
            table = [(a, a.weight(phase)) for a in actions if a.weight(phase) > 0]
            self._tables.append(table)
            self._totals.append(sum(w for _, w in table))

    @property
    def number_of_phases(self) -> int:
        return len(self._tables)

    def total_weight(self, phase: int) -> float:
        return self._totals[phase]

    def probability(self, action: Action, phase: int) -> float:
        """Chance of picking ``action`` in ``phase`` (0.0 for an all-zero phase)."""
        total = self._totals[phase]
        if total == 0:
            return 0.0
        return action.weight(phase) / total

    def select(self, phase: int, rng: Random) -> Action:
        """Pick an action for ``phase``.

        Raises:
            ZeroProbabilityError: if every action weighs zero in ``phase``.
        """
        total = self._totals[phase]
        if total <= 0:
            raise ZeroProbabilityError(
                f"All probabilities are zero, currentPhase={phase}",
                phase=phase,
            )

        r = rng.random() * total
        cumulative = 0.0
        for action, weight in self._tables[phase]:
            cumulative += weight
            if cumulative > r:
                break

        logger.debug("Selected action '%s' in phase %d", action.name, phase)
        return action
