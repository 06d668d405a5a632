"""logic/wander.py — Autonomous wandering for settled agents.

Only THINKING and IDLE agents wander, and only while settled with an
empty state queue.  Every ``wander.min_delay_ms``–``max_delay_ms`` they
pick a random padded point and walk to it.

    THINKING — stays inside its own thinking zone, full speed.
    IDLE     — roams across *all* idle zones at a randomised leisurely
               speed (``idle_speed_min`` + r × ``idle_speed_span`` of
               full speed), re-rolled each cycle.

A failed route is not an error: the agent stays put and tries again at
the next scheduled time.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from components.agent import Agent, IDLE, THINKING
from core.office_map import CATEGORY_IDLE, CATEGORY_THINK
from core.tuning import get as _tun
from logic.pathfinding import plan_route

if TYPE_CHECKING:
    from core.office_map import Zone
    from simulation.office_sim import OfficeSim


def schedule_next_wander(sim: "OfficeSim", agent: Agent) -> None:
    """Set ``next_wander_time`` to now + uniform [min_delay, max_delay)."""
    lo = _tun("wander", "min_delay_ms", 3000.0)
    hi = _tun("wander", "max_delay_ms", 6000.0)
    agent.next_wander_time = sim.clock.now + lo + sim.rng.random() * (hi - lo)


def _pick_wander_zone(sim: "OfficeSim", agent: Agent) -> "Zone | None":
    full = _tun("movement", "move_speed", 150.0)

    if agent.visual_state == IDLE:
        zones = sim.office_map.zones_of(CATEGORY_IDLE)
        if not zones:
            return None
        lo = _tun("wander", "idle_speed_min", 0.4)
        span = _tun("wander", "idle_speed_span", 0.4)
        agent.current_speed = full * (lo + sim.rng.random() * span)
        return sim.rng.choice(zones)

    zone = agent.wander_zone
    if zone is None:
        zone = sim.office_map.zone_containing(agent.x, agent.y, CATEGORY_THINK)
    if zone is None:
        zones = sim.office_map.zones_of(CATEGORY_THINK)
        if not zones:
            return None
        zone = sim.rng.choice(zones)
    agent.wander_zone = zone
    agent.current_speed = full
    return zone


def update_wandering(sim: "OfficeSim", agent: Agent) -> None:
    """One wander check for a settled agent with nothing queued."""
    if agent.visual_state not in (THINKING, IDLE):
        agent.wander_zone = None
        agent.current_speed = _tun("movement", "move_speed", 150.0)
        return

    now = sim.clock.now
    if now < agent.next_wander_time:
        return

    zone = _pick_wander_zone(sim, agent)
    if zone is not None:
        padding = _tun("wander", "zone_padding", 8.0)
        tx, ty = sim.office_map.random_point_in(zone, padding, sim.rng)
        path = plan_route(sim.office_map, agent.x, agent.y, tx, ty)
        if path is not None and len(path) > 1:
            agent.path = path
            agent.path_index = 0
            agent.target_zone = zone.with_point(tx, ty)
            agent.target_state = agent.visual_state
            agent.is_moving = True
            sim.dev_log.record(agent.id, "wander", f"→ {zone.id}", t=now,
                               details={"speed": round(agent.current_speed, 1)})
        else:
            sim.dev_log.record(agent.id, "wander", f"no route in {zone.id}", t=now)

    schedule_next_wander(sim, agent)
