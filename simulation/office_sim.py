"""simulation/office_sim.py — The office world object.

Owns everything the movement/state core mutates: the agents, the
workstation table, the clock and the random source.  Nothing lives in
module globals, so tests can build as many independent offices as they
like.

Inbound requests from the transport layer map one-to-one onto methods::

    sim = OfficeSim(load_office_map("data/office.toml"), seed=7)
    agent = sim.spawn("session-42")       # create
    sim.set_state(agent.id, "CODING")     # queue
    sim.despawn(agent.id)                 # destroy + release desk

and the frame loop calls ``sim.tick(dt)`` once per frame.  Outbound
notifications go through ``sim.bus`` (see ``core/events.py``).
"""

from __future__ import annotations
import random
from typing import Any, Iterable

from components.agent import Agent, ACTIVITY_STATES, AGENT_COLORS, CODING, SPAWNED
from components.dev_log import DevLog
from components.resources import OfficeClock
from core.events import (
    EventBus, AgentSpawned, AgentDespawned, AgentStateChanged, AgentWaved,
)
from core.office_map import OfficeMap
from core.tuning import get as _tun
from logic.state_queue import queue_state_change
from logic.tick import tick_agents
from logic.workstations import WorkstationTable


def validate_state(state: str) -> str:
    """Raise ``ValueError`` unless *state* is a requestable activity state."""
    if state not in ACTIVITY_STATES:
        raise ValueError(f"Invalid state {state!r}. Must be one of: "
                         f"{', '.join(ACTIVITY_STATES)}")
    return state


class OfficeSim:
    """All mutable office state plus the per-frame driver."""

    def __init__(self, office_map: OfficeMap, *,
                 seed: int | None = None,
                 rng: random.Random | None = None,
                 clock: OfficeClock | None = None,
                 bus: EventBus | None = None,
                 dev_log: DevLog | None = None) -> None:
        self.office_map = office_map
        self.rng = rng if rng is not None else random.Random(seed)
        self.clock = clock if clock is not None else OfficeClock()
        self.bus = bus if bus is not None else EventBus()
        self.dev_log = dev_log if dev_log is not None else DevLog()
        self.workstations = WorkstationTable(office_map)

        self.agents: dict[str, Agent] = {}
        self.spawn_order: list[str] = []

    # ── Agent lifecycle ──────────────────────────────────────────────

    def _new_id(self) -> str:
        while True:
            agent_id = f"{self.rng.getrandbits(48):012x}"
            if agent_id not in self.agents:
                return agent_id

    def spawn(self, session_ref: str = "", *,
              agent_id: str | None = None) -> Agent:
        """Create a SPAWNED agent at the office spawn point.

        Ids are 12 hex digits drawn from the office RNG unless given.
        """
        if agent_id is None:
            agent_id = self._new_id()
        elif agent_id in self.agents:
            raise ValueError(f"agent {agent_id!r} already exists")

        now = self.clock.now
        x, y = self.office_map.spawn_point()
        agent = Agent(
            id=agent_id,
            session_ref=session_ref,
            appearance=self.rng.choice(AGENT_COLORS),
            x=x, y=y,
            current_speed=_tun("movement", "move_speed", 150.0),
            spawn_time=now,
            current_state_start_time=now,
            last_activity=now,
        )
        self.agents[agent_id] = agent
        self.spawn_order.append(agent_id)

        print(f"[OFFICE] Agent {agent_id} spawned (session: {session_ref})")
        self.dev_log.record(agent_id, "life", "spawned", t=now)
        self.bus.emit(AgentSpawned(agent_id=agent_id, session_ref=session_ref,
                                   x=x, y=y))
        return agent

    def despawn(self, agent_id: str) -> bool:
        """Remove an agent and release its desk.  False if unknown."""
        agent = self.agents.pop(agent_id, None)
        if agent is None:
            return False
        self.spawn_order.remove(agent_id)
        released = self.workstations.release(agent_id)

        print(f"[OFFICE] Agent {agent_id} despawned")
        self.dev_log.record(agent_id, "life", "despawned", t=self.clock.now,
                            details={"released": released})
        self.bus.emit(AgentDespawned(agent_id=agent_id, released_zone=released))
        return True

    def set_state(self, agent_id: str, state: str) -> Agent | None:
        """Record a new authoritative state and queue the transition.

        Raises ``ValueError`` for states outside THINKING / PLANNING /
        CODING / IDLE; returns ``None`` for unknown agents.
        """
        validate_state(state)
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        now = self.clock.now
        agent.state = state
        agent.last_activity = now
        queue_state_change(self, agent, state)
        self.bus.emit(AgentStateChanged(agent_id=agent_id, state=state,
                                        timestamp=now))
        return agent

    def wave(self, agent_id: str, duration_ms: float | None = None) -> Agent | None:
        """Start (or restart) the wave highlight for *duration_ms*."""
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        if duration_ms is None:
            duration_ms = _tun("office", "wave_duration_ms", 7000.0)
        now = self.clock.now
        agent.wave_until = now + duration_ms
        agent.last_activity = now
        self.bus.emit(AgentWaved(agent_id=agent_id, duration_ms=duration_ms))
        return agent

    def load_full_state(self, entities: Iterable[dict[str, Any]]) -> list[Agent]:
        """Replace every agent with the given snapshot.

        Each entry needs ``entity_id`` and may carry ``session_id`` and
        ``state``; non-SPAWNED states are queued so the agents walk to
        their zones.  The whole snapshot is checked first; a bad entry
        raises ``ValueError`` and leaves the current agents untouched.
        """
        entities = list(entities)
        seen: set[str] = set()
        for data in entities:
            if data.get("entity_id") in (None, ""):
                raise ValueError(f"snapshot entry without entity_id: {data!r}")
            agent_id = str(data["entity_id"])
            if agent_id in seen:
                raise ValueError(f"duplicate entity_id {agent_id!r} in snapshot")
            seen.add(agent_id)
            state = data.get("state") or SPAWNED
            if state != SPAWNED:
                validate_state(state)

        for agent_id in list(self.spawn_order):
            self.despawn(agent_id)
        self.workstations.clear()

        created: list[Agent] = []
        for data in entities:
            state = data.get("state") or SPAWNED
            agent = self.spawn(data.get("session_id", ""),
                               agent_id=str(data["entity_id"]))
            if state != SPAWNED:
                self.set_state(agent.id, state)
            created.append(agent)
        return created

    def reap_inactive(self, timeout_ms: float | None = None) -> list[str]:
        """Despawn agents with no request for longer than *timeout_ms*."""
        if timeout_ms is None:
            timeout_ms = _tun("office", "inactive_timeout_ms", 300000.0)
        now = self.clock.now
        stale = [aid for aid in self.spawn_order
                 if now - self.agents[aid].last_activity > timeout_ms]
        for agent_id in stale:
            self.despawn(agent_id)
        return stale

    # ── Debug / teleport helpers ─────────────────────────────────────

    def teleport(self, agent_id: str, x: float, y: float) -> Agent | None:
        """Move an agent instantly and abandon any walk in progress.

        A desk claimed for the abandoned walk is released unless the
        agent is already seated in CODING.
        """
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        agent.x, agent.y = x, y
        agent.path = []
        agent.path_index = 0
        agent.is_moving = False
        agent.target_state = None
        agent.target_zone = None
        if agent.visual_state != CODING:
            released = self.workstations.release(agent_id)
            if released is not None:
                self.dev_log.record(agent_id, "desk", f"released {released}",
                                    t=self.clock.now,
                                    details={"reason": "teleport"})
        return agent

    def agent_tile(self, agent_id: str) -> tuple[int, int] | None:
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        return self.office_map.pixel_to_tile(agent.x, agent.y)

    # ── Per-frame tick ───────────────────────────────────────────────

    def tick(self, dt: float) -> None:
        """Advance the clock by *dt* seconds, update every agent, then
        deliver this frame's events."""
        self.clock.advance(dt)
        tick_agents(self, dt)
        self.bus.drain()

    # ── Queries ──────────────────────────────────────────────────────

    def get(self, agent_id: str) -> Agent | None:
        return self.agents.get(agent_id)

    def ordered_agents(self) -> list[Agent]:
        return [self.agents[aid] for aid in self.spawn_order]

    def assignment_stats(self) -> dict[str, int]:
        return self.workstations.stats()

    def __len__(self) -> int:
        return len(self.agents)

    def debug_info(self) -> dict:
        return {
            "agents": len(self.agents),
            "time_ms": self.clock.now,
            "workstations": self.workstations.stats(),
            "pending_events": self.bus.pending_count(),
        }
