"""components.agent — Per-agent record for the office core.

Positions are pixels, speeds pixels per second, timestamps milliseconds
on the ``OfficeClock``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from core.office_map import Zone


# ── Activity states ──────────────────────────────────────────────────

SPAWNED = "SPAWNED"
THINKING = "THINKING"
PLANNING = "PLANNING"
CODING = "CODING"
IDLE = "IDLE"

GAME_STATES = (SPAWNED, THINKING, PLANNING, CODING, IDLE)
# States an agent can be asked to enter (SPAWNED is creation-only)
ACTIVITY_STATES = (THINKING, PLANNING, CODING, IDLE)
# Settled states that wander on their own
WANDER_STATES = (THINKING, IDLE)

DIRECTIONS = ("up", "down", "left", "right")

AGENT_COLORS = (
    (255, 107, 107), (78, 205, 196), (255, 230, 109), (149, 225, 211),
    (243, 129, 129), (170, 150, 218), (252, 186, 211), (168, 230, 207),
)


@dataclass
class QueuedState:
    """One pending state request."""
    state: str
    queued_at: float = 0.0     # ms


@dataclass
class Agent:
    """Mutable state of one avatar.

    ``state`` is the latest requested state (authoritative),
    ``visual_state`` what is currently being enacted, and
    ``target_state`` the state being walked toward (``None`` when
    settled).
    """
    id: str
    session_ref: str = ""
    appearance: tuple[int, int, int] = AGENT_COLORS[0]    # body colour

    # State machine
    state: str = SPAWNED
    visual_state: str = SPAWNED
    target_state: Optional[str] = None
    state_queue: list[QueuedState] = field(default_factory=list)

    # Position
    x: float = 0.0
    y: float = 0.0
    direction: str = "down"

    # Path following
    path: list[tuple[float, float]] = field(default_factory=list)
    path_index: int = 0
    target_zone: Optional["Zone"] = None
    is_moving: bool = False
    current_speed: float = 150.0

    # Wandering (THINKING / IDLE)
    wander_zone: Optional["Zone"] = None
    next_wander_time: float = 0.0

    # Timing
    spawn_time: float = 0.0
    current_state_start_time: float = 0.0
    last_activity: float = 0.0

    # Animation
    animation_frame: int = 0
    animation_timer: float = 0.0   # s

    # Wave highlight, cleared by the tick once the clock passes it
    wave_until: Optional[float] = None

    @property
    def is_waving(self) -> bool:
        return self.wave_until is not None

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def queued_states(self) -> list[str]:
        return [q.state for q in self.state_queue]
