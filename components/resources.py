"""components.resources — Office-level singletons (not per-agent)."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class OfficeClock:
    """Monotonic office time in milliseconds.

    Single source of truth for every timestamp in the core: state
    display timers, wander schedules, queue timestamps and wave expiry.
    Advanced once per frame by ``OfficeSim.tick``; tests set ``now``
    directly.
    """
    now: float = 0.0

    def advance(self, dt: float) -> float:
        """Advance by *dt* seconds.  Returns the new time (ms)."""
        self.now += dt * 1000.0
        return self.now
