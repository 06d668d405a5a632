"""components — Plain dataclasses shared by the office core.

Submodules
----------
agent       Agent, QueuedState, state / direction constants
resources   OfficeClock
dev_log     DevLog

Public names are re-exported so callers can ``from components import Agent``.
"""

from components.agent import (
    Agent, QueuedState,
    SPAWNED, THINKING, PLANNING, CODING, IDLE,
    GAME_STATES, ACTIVITY_STATES, WANDER_STATES, DIRECTIONS, AGENT_COLORS,
)
from components.resources import OfficeClock
from components.dev_log import DevLog

__all__ = [
    "Agent", "QueuedState",
    "SPAWNED", "THINKING", "PLANNING", "CODING", "IDLE",
    "GAME_STATES", "ACTIVITY_STATES", "WANDER_STATES", "DIRECTIONS",
    "AGENT_COLORS",
    "OfficeClock", "DevLog",
]
