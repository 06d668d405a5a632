"""scenes/office_draw.py — Rendering helpers for the office scene.

Pure draw functions: each takes the surface, an integer scale and the
data it draws.  Office pixels map to screen pixels as ``ox + x * scale``.
"""

from __future__ import annotations
import pygame
from core.app import App
from core.office_map import (
    OfficeMap, CATEGORY_WORK, CATEGORY_PLAN, CATEGORY_THINK, CATEGORY_IDLE,
)
from components.agent import Agent

FLOOR_COLOR = (58, 54, 66)
WALL_COLOR = (28, 26, 34)
BLOCKED_OVERLAY = (220, 60, 60, 90)

ZONE_COLORS = {
    CATEGORY_WORK:  (90, 160, 255),
    CATEGORY_PLAN:  (255, 200, 80),
    CATEGORY_THINK: (150, 110, 230),
    CATEGORY_IDLE:  (90, 210, 140),
}

_FACING_ARROWS = {
    "up": (0, -1), "down": (0, 1), "left": (-1, 0), "right": (1, 0),
}


# ── Tiles ───────────────────────────────────────────────────────────

def draw_tiles(surface: pygame.Surface, office: OfficeMap,
               ox: int, oy: int, scale: float, show_collision: bool):
    ts = office.tile_size * scale
    overlay = None
    if show_collision:
        overlay = pygame.Surface((int(ts) + 1, int(ts) + 1), pygame.SRCALPHA)
        overlay.fill(BLOCKED_OVERLAY)
    for ty, row in enumerate(office.blocked_rows()):
        for tx, blocked in enumerate(row):
            rect = pygame.Rect(int(ox + tx * ts), int(oy + ty * ts),
                               int(ts) + 1, int(ts) + 1)
            pygame.draw.rect(surface, WALL_COLOR if blocked else FLOOR_COLOR, rect)
            if overlay is not None and blocked:
                surface.blit(overlay, rect.topleft)


# ── Zones ───────────────────────────────────────────────────────────

def draw_zones(surface: pygame.Surface, app: App, office: OfficeMap,
               ox: int, oy: int, scale: float, occupied: set[str]):
    for zone in office.all_zones():
        color = ZONE_COLORS.get(zone.category, (255, 0, 255))
        rect = pygame.Rect(int(ox + zone.x * scale), int(oy + zone.y * scale),
                           int(zone.width * scale), int(zone.height * scale))
        width = 3 if zone.id in occupied else 1
        pygame.draw.rect(surface, color, rect, width)
        app.draw_text(surface, zone.id, rect.x + 2, rect.y + 2, color, app.font_sm)


# ── Agents ──────────────────────────────────────────────────────────

def draw_path(surface: pygame.Surface, agent: Agent,
              ox: int, oy: int, scale: float):
    if not agent.path:
        return
    prev = (int(ox + agent.x * scale), int(oy + agent.y * scale))
    for wx, wy in agent.path[agent.path_index:]:
        pt = (int(ox + wx * scale), int(oy + wy * scale))
        pygame.draw.line(surface, (0, 200, 255), prev, pt, 2)
        pygame.draw.circle(surface, (0, 200, 255), pt, 3)
        prev = pt


def draw_agent(surface: pygame.Surface, app: App, agent: Agent,
               ox: int, oy: int, scale: float, selected: bool,
               show_info: bool):
    cx = int(ox + agent.x * scale)
    cy = int(oy + agent.y * scale)
    radius = max(4, int(12 * scale))

    # Walk bob: frames 1 and 3 lift the body while moving
    bob = -2 if agent.is_moving and agent.animation_frame % 2 else 0
    pygame.draw.circle(surface, agent.appearance, (cx, cy + bob), radius)
    if selected:
        pygame.draw.circle(surface, (255, 255, 255), (cx, cy + bob), radius + 3, 1)
    if agent.is_waving:
        pygame.draw.circle(surface, (255, 240, 120), (cx, cy + bob), radius + 6, 2)

    fx, fy = _FACING_ARROWS.get(agent.direction, (0, 1))
    pygame.draw.line(surface, (20, 20, 20), (cx, cy + bob),
                     (cx + fx * radius, cy + bob + fy * radius), 2)

    if show_info:
        label = agent.visual_state
        if agent.target_state:
            label += f" → {agent.target_state}"
        if agent.state_queue:
            label += f" [{','.join(agent.queued_states())}]"
        app.draw_text(surface, label, cx - radius, cy - radius - 16,
                      (230, 230, 230), font=app.font_sm, bg=(0, 0, 0, 160))
