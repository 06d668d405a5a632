"""logic/state_queue.py — Per-agent state queue and transitions.

Requests never interrupt an agent: they are appended to
``Agent.state_queue`` and picked up by ``process_state_queue`` once the
agent has stopped moving and has shown its current visual state for at
least ``state.min_display_ms``.

Resolution failures (no zone of the category, every desk taken, no
route) put the request back at the *front* of the queue and it is
retried on a later tick.  A request that can never be satisfied
therefore blocks everything queued behind it.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from components.agent import (
    Agent, QueuedState, CODING, PLANNING, THINKING, IDLE,
)
from core.office_map import CATEGORY_PLAN, CATEGORY_THINK, CATEGORY_IDLE
from core.tuning import get as _tun
from logic.pathfinding import plan_route

if TYPE_CHECKING:
    from core.office_map import Zone
    from simulation.office_sim import OfficeSim


def queue_state_change(sim: "OfficeSim", agent: Agent, new_state: str) -> None:
    """Append *new_state* to the agent's queue, stamped with ``now``."""
    now = sim.clock.now
    agent.state_queue.append(QueuedState(state=new_state, queued_at=now))
    sim.dev_log.record(agent.id, "state", f"queued {new_state}", t=now,
                       details={"queue": agent.queued_states()})


def _collapse_duplicates(queue: list[QueuedState]) -> None:
    """Shrink every run of back-to-back identical states to its first entry."""
    queue[:] = [q for i, q in enumerate(queue)
                if i == 0 or q.state != queue[i - 1].state]


def process_state_queue(sim: "OfficeSim", agent: Agent) -> None:
    """Start the next queued transition if the agent is free to move."""
    if agent.is_moving:
        return
    if not agent.state_queue:
        return

    now = sim.clock.now
    min_display = _tun("state", "min_display_ms", 4000.0)
    if now - agent.current_state_start_time < min_display:
        return

    _collapse_duplicates(agent.state_queue)
    entry = agent.state_queue.pop(0)
    next_state = entry.state

    if next_state == agent.visual_state:
        sim.dev_log.record(agent.id, "state", f"already {next_state}, skipped", t=now)
        return

    if agent.visual_state == CODING and next_state != CODING:
        released = sim.workstations.release(agent.id)
        if released is not None:
            sim.dev_log.record(agent.id, "desk", f"released {released}", t=now)

    zone = resolve_target_zone(sim, agent, next_state)
    if zone is None:
        agent.state_queue.insert(0, entry)
        sim.dev_log.record(agent.id, "state", f"requeue {next_state}", t=now,
                           details={"reason": "no zone"})
        return

    path = plan_route(sim.office_map, agent.x, agent.y, zone.center_x, zone.center_y)
    if path is None:
        agent.state_queue.insert(0, entry)
        sim.dev_log.record(agent.id, "state", f"requeue {next_state}", t=now,
                           details={"reason": "no path", "zone": zone.id})
        return

    agent.path = path
    agent.path_index = 0
    agent.target_state = next_state
    agent.target_zone = zone
    agent.is_moving = True
    agent.current_speed = _tun("movement", "move_speed", 150.0)

    sim.dev_log.record(agent.id, "path", f"→ {zone.id} for {next_state}", t=now,
                       details={"waypoints": len(path)})


def resolve_target_zone(sim: "OfficeSim", agent: Agent, state: str) -> "Zone | None":
    """Pick where *agent* should go to enact *state*.

    CODING claims (or reuses) a workstation.  PLANNING picks a planning
    zone.  THINKING / IDLE pick a zone and then a random padded point in
    it, returned as a copy of the zone centred on that point.
    """
    if state == CODING:
        desk = sim.workstations.assign(agent.id)
        if desk is not None:
            sim.dev_log.record(agent.id, "desk", f"holds {desk.id}", t=sim.clock.now)
        return desk

    category = {PLANNING: CATEGORY_PLAN,
                THINKING: CATEGORY_THINK,
                IDLE: CATEGORY_IDLE}.get(state)
    if category is None:
        return None
    zones = sim.office_map.zones_of(category)
    if not zones:
        return None

    zone = sim.rng.choice(zones)
    if state == PLANNING:
        return zone

    padding = _tun("wander", "zone_padding", 8.0)
    px, py = sim.office_map.random_point_in(zone, padding, sim.rng)
    return zone.with_point(px, py)
