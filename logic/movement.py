"""logic/movement.py — Path following and arrival.

Agents walk straight toward ``path[path_index]`` at ``current_speed``
(free 2D interpolation, not tile-locked).  A waypoint counts as reached
inside ``movement.arrival_threshold`` pixels.  When the last one is
reached the agent snaps to its exact target point and settles into
``target_state``.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING

from components.agent import Agent, WANDER_STATES
from core.events import AgentArrived
from core.tuning import get as _tun
from logic.pathfinding import direction_from_delta, facing_to_direction
from logic.wander import schedule_next_wander

if TYPE_CHECKING:
    from simulation.office_sim import OfficeSim


def update_path_following(sim: "OfficeSim", agent: Agent, dt: float) -> None:
    """Advance *agent* along its path by one tick of *dt* seconds."""
    if agent.path_index >= len(agent.path):
        arrive_at_destination(sim, agent)
        return

    wx, wy = agent.path[agent.path_index]
    dx = wx - agent.x
    dy = wy - agent.y
    dist = math.hypot(dx, dy)

    if dist < _tun("movement", "arrival_threshold", 4.0):
        agent.path_index += 1
        if agent.path_index >= len(agent.path):
            arrive_at_destination(sim, agent)
        return

    speed = agent.current_speed or _tun("movement", "move_speed", 150.0)
    ratio = min(speed * dt / dist, 1.0)
    mx = dx * ratio
    my = dy * ratio
    agent.x += mx
    agent.y += my
    agent.direction = direction_from_delta(mx, my)


def arrive_at_destination(sim: "OfficeSim", agent: Agent) -> None:
    """Settle *agent* at the end of its path."""
    now = sim.clock.now
    zone = agent.target_zone

    # Exact target point, never the last tile centre
    if zone is not None:
        agent.x, agent.y = zone.center_x, zone.center_y
    elif agent.path:
        agent.x, agent.y = agent.path[-1]

    agent.is_moving = False
    if agent.target_state is not None:
        agent.visual_state = agent.target_state
    agent.current_state_start_time = now

    if zone is not None:
        facing = facing_to_direction(zone.facing)
        if facing is not None:
            agent.direction = facing

    if agent.visual_state in WANDER_STATES:
        if zone is not None:
            agent.wander_zone = sim.office_map.zone_by_id(zone.id) or zone
        schedule_next_wander(sim, agent)
    else:
        agent.wander_zone = None

    agent.path = []
    agent.path_index = 0
    agent.target_state = None
    agent.target_zone = None

    sim.dev_log.record(agent.id, "arrive",
                       f"now {agent.visual_state}, facing {agent.direction}",
                       t=now, details={"zone": zone.id if zone else None})
    sim.bus.emit(AgentArrived(agent_id=agent.id,
                              visual_state=agent.visual_state,
                              zone_id=zone.id if zone else None,
                              x=agent.x, y=agent.y))
