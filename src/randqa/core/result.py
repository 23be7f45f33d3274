"""RunResult dataclass."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class RunResult:
    """Summary of a randomized run that exhausted its step budget."""

    steps: int = 0
    abandoned: int = 0
    seed: int = 0
    final_phase: int = 0
    action_counts: Counter[str] = field(default_factory=Counter)
    pool_sizes: dict[str, int] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None
    duration_ms: float = 0.0

    @property
    def attempts(self) -> int:
        """Counted steps plus abandoned attempts."""
        return self.steps + self.abandoned

    @property
    def actions_used(self) -> int:
        """Number of distinct actions that completed at least once."""
        return sum(1 for count in self.action_counts.values() if count > 0)

    def finish(self) -> None:
        """Mark the run as finished."""
        self.finished_at = datetime.now()
        self.duration_ms = (self.finished_at - self.started_at).total_seconds() * 1000

    def summary(self) -> dict[str, int | float]:
        """Get a summary of the run."""
        return {
            "steps": self.steps,
            "abandoned": self.abandoned,
            "attempts": self.attempts,
            "seed": self.seed,
            "final_phase": self.final_phase,
            "actions_used": self.actions_used,
            "duration_ms": round(self.duration_ms, 2),
        }
