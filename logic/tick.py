"""logic/tick.py — Per-frame agent update pipeline.

Each agent runs the same fixed sequence every frame:

    1. process_state_queue   — maybe start a queued transition
    2. update_path_following — only while moving
    3. update_wandering      — only when settled with an empty queue
    4. tick_animation        — always
    5. wave expiry           — always

The guards in 2 and 3 are evaluated *after* step 1, so a transition that
starts moving this frame suppresses this frame's wander check.

Usage::

    from logic.tick import tick_agents
    tick_agents(sim, dt)
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from components.agent import Agent
from core.tuning import get as _tun
from logic.movement import update_path_following
from logic.state_queue import process_state_queue
from logic.wander import update_wandering

if TYPE_CHECKING:
    from simulation.office_sim import OfficeSim


def tick_animation(agent: Agent, dt: float) -> None:
    """Advance the walk-cycle frame every ``animation.frame_interval`` s."""
    interval = _tun("animation", "frame_interval", 0.3)
    frames = int(_tun("animation", "frame_count", 4))
    agent.animation_timer += dt
    if agent.animation_timer >= interval:
        agent.animation_timer -= interval
        agent.animation_frame = (agent.animation_frame + 1) % frames


def expire_wave(agent: Agent, now: float) -> None:
    if agent.wave_until is not None and now >= agent.wave_until:
        agent.wave_until = None


def update_agent(sim: "OfficeSim", agent: Agent, dt: float) -> None:
    """Run the full per-frame pipeline for one agent."""
    process_state_queue(sim, agent)

    if agent.is_moving:
        update_path_following(sim, agent, dt)

    if not agent.is_moving and not agent.state_queue:
        update_wandering(sim, agent)

    tick_animation(agent, dt)
    expire_wave(agent, sim.clock.now)


def tick_agents(sim: "OfficeSim", dt: float) -> None:
    """Update every agent once, in spawn order."""
    for agent_id in list(sim.spawn_order):
        agent = sim.agents.get(agent_id)
        if agent is not None:
            update_agent(sim, agent, dt)
