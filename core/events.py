"""core/events.py — Outbound office notifications.

The core never talks to a transport.  ``OfficeSim`` emits the plain
records below and drains the bus once at the end of every tick, so
subscribers (a websocket broadcaster, the viewer, tests) always see
end-of-tick agent state::

    sim.bus.subscribe(AgentArrived, lambda ev: send(ev))
    sim.bus.subscribe("AgentSpawned", spawned.append)

Handlers may emit further events; they are delivered in the same drain.
A handler that raises is reported with its traceback and skipped.
"""

from __future__ import annotations
import traceback
from collections import Counter, defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


# ── Event records ────────────────────────────────────────────────────

@dataclass
class AgentSpawned:
    agent_id: str
    session_ref: str = ""
    x: float = 0.0
    y: float = 0.0


@dataclass
class AgentDespawned:
    agent_id: str
    released_zone: Optional[str] = None     # desk freed by the despawn


@dataclass
class AgentStateChanged:
    """A new authoritative state was requested (``Agent.state``)."""
    agent_id: str
    state: str
    timestamp: float = 0.0


@dataclass
class AgentArrived:
    """Walk finished; ``visual_state`` is now being enacted."""
    agent_id: str
    visual_state: str
    zone_id: Optional[str] = None
    x: float = 0.0
    y: float = 0.0


@dataclass
class AgentWaved:
    agent_id: str
    duration_ms: float = 0.0


# ── Bus ──────────────────────────────────────────────────────────────

EventKey = Union[str, type]

# Re-emission rounds allowed per drain before the rest is left queued
MAX_ROUNDS = 1000


def _key(event_type: EventKey) -> str:
    return event_type if isinstance(event_type, str) else event_type.__name__


class EventBus:
    def __init__(self):
        self._pending: deque[Any] = deque()
        self._handlers: dict[str, list[Callable]] = defaultdict(list)
        self._delivered: Counter[str] = Counter()

    def emit(self, event) -> None:
        self._pending.append(event)

    def subscribe(self, event_type: EventKey, handler: Callable) -> None:
        """Call *handler(event)* for every event of *event_type*
        (a class or its name)."""
        self._handlers[_key(event_type)].append(handler)

    def unsubscribe(self, event_type: EventKey, handler: Callable) -> None:
        handlers = self._handlers.get(_key(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def drain(self) -> int:
        """Deliver everything pending.  Returns the number of events."""
        delivered = 0
        for _round in range(MAX_ROUNDS):
            if not self._pending:
                break
            batch, self._pending = self._pending, deque()
            for event in batch:
                self._dispatch(event)
            delivered += len(batch)
        return delivered

    def _dispatch(self, event) -> None:
        name = type(event).__name__
        self._delivered[name] += 1
        for handler in list(self._handlers.get(name, ())):
            try:
                handler(event)
            except Exception as exc:
                print(f"[EVENT] {name} handler {getattr(handler, '__name__', handler)!s} "
                      f"failed: {exc}")
                traceback.print_exc()

    def clear(self) -> None:
        """Drop pending events without delivering them."""
        self._pending.clear()

    def stats(self) -> dict[str, int]:
        """Delivered counts per event type since creation."""
        return dict(self._delivered)

    def pending_count(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return (f"EventBus(pending={len(self._pending)}, "
                f"types={sorted(self._handlers)})")
