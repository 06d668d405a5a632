"""components.dev_log — Why did the agent do that?

Bounded history of decisions taken by the office core, one entry per
decision: a state queued, skipped or requeued, a route started, an
arrival, a desk claimed or freed, a wander walk.  The viewer shows the
selected agent's tail; tests grep it for reasons.

    sim.dev_log.record(agent.id, "state", "requeue CODING", t=now,
                       details={"reason": "no zone"})

Entries are dicts ``{"t", "agent", "cat", "msg", "details"}`` with ``t``
in office-clock milliseconds.
"""

from __future__ import annotations
from collections import deque


class DevLog:
    def __init__(self, max_entries: int = 500):
        self.entries: deque[dict] = deque(maxlen=max_entries)
        self.paused = False
        # Empty set = keep everything
        self.only_cats: set[str] = set()
        self.only_agents: set[str] = set()

    def record(self, agent_id: str, cat: str, msg: str, *,
               t: float = 0.0, details: dict | None = None) -> None:
        if self.paused:
            return
        if self.only_cats and cat not in self.only_cats:
            return
        if self.only_agents and agent_id not in self.only_agents:
            return
        self.entries.append({"t": t, "agent": agent_id, "cat": cat,
                             "msg": msg, "details": details})

    def clear(self) -> None:
        self.entries.clear()

    def _tail(self, n: int, pred=None) -> list[dict]:
        picked = [e for e in self.entries if pred is None or pred(e)]
        return picked[-n:] if n > 0 else []

    def recent(self, n: int = 50) -> list[dict]:
        """Newest *n* entries, oldest first."""
        return self._tail(n)

    def for_agent(self, agent_id: str, n: int = 30) -> list[dict]:
        return self._tail(n, lambda e: e["agent"] == agent_id)

    def for_cat(self, cat: str, n: int = 50) -> list[dict]:
        return self._tail(n, lambda e: e["cat"] == cat)

    def __len__(self) -> int:
        return len(self.entries)
