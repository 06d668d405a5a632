"""scenes/office_scene.py — Live view of the office simulation.

Dev keys
--------
    S          spawn an agent
    D          despawn the selected agent
    1-4        request THINKING / PLANNING / CODING / IDLE for the selection
    W          wave at the selected agent
    Tab        cycle selection
    C Z P I    toggle collision / zones / paths / agent labels
    F5         reload data/tuning.toml
    hold F     fast-forward (x10, Shift for x30)
"""

from __future__ import annotations
import pygame
from core.app import App
from core.scene import Scene
from core import tuning as tuning_mod
from components.agent import THINKING, PLANNING, CODING, IDLE
from scenes.office_draw import draw_tiles, draw_zones, draw_path, draw_agent

_STATE_KEYS = {
    pygame.K_1: THINKING,
    pygame.K_2: PLANNING,
    pygame.K_3: CODING,
    pygame.K_4: IDLE,
}


class OfficeScene(Scene):
    def __init__(self):
        self.show_collision = False
        self.show_zones = True
        self.show_paths = True
        self.show_info = True
        self.selected: str | None = None
        self.time_scale = 1.0
        self._spawned = 0

    # ── lifecycle ────────────────────────────────────────────────────

    def on_enter(self, app: App):
        print(f"[OFFICE] Viewing {app.sim.office_map!r}")

    # ── helpers ──────────────────────────────────────────────────────

    def _layout(self, app: App) -> tuple[int, int, float]:
        """Screen offset and scale that fit the office in the window."""
        office = app.sim.office_map
        vw, vh = app.canvas_size
        scale = min(vw / office.pixel_width, (vh - 24) / office.pixel_height)
        ox = int((vw - office.pixel_width * scale) / 2)
        oy = 24
        return ox, oy, scale

    def _cycle_selection(self, app: App):
        order = app.sim.spawn_order
        if not order:
            self.selected = None
            return
        if self.selected not in order:
            self.selected = order[0]
            return
        self.selected = order[(order.index(self.selected) + 1) % len(order)]

    # ── events ───────────────────────────────────────────────────────

    def handle_event(self, event: pygame.event.Event, app: App):
        if event.type != pygame.KEYDOWN:
            return
        sim = app.sim
        key = event.key

        if key == pygame.K_s:
            self._spawned += 1
            agent = sim.spawn(f"viewer-{self._spawned}")
            self.selected = agent.id
        elif key == pygame.K_d and self.selected:
            sim.despawn(self.selected)
            self.selected = None
            self._cycle_selection(app)
        elif key in _STATE_KEYS and self.selected:
            sim.set_state(self.selected, _STATE_KEYS[key])
        elif key == pygame.K_w and self.selected:
            sim.wave(self.selected)
        elif key == pygame.K_TAB:
            self._cycle_selection(app)
        elif key == pygame.K_c:
            self.show_collision = not self.show_collision
        elif key == pygame.K_z:
            self.show_zones = not self.show_zones
        elif key == pygame.K_p:
            self.show_paths = not self.show_paths
        elif key == pygame.K_i:
            self.show_info = not self.show_info
        elif key == pygame.K_F5:
            tuning_mod.reload()
        elif key == pygame.K_ESCAPE:
            app.running = False

    # ── update ───────────────────────────────────────────────────────

    def update(self, dt: float, app: App):
        keys = pygame.key.get_pressed()
        if keys[pygame.K_f]:
            mods = pygame.key.get_mods()
            self.time_scale = 30.0 if (mods & pygame.KMOD_SHIFT) else 10.0
        else:
            self.time_scale = 1.0
        app.sim.tick(dt * self.time_scale)
        app.sim.reap_inactive()

    # ── draw ─────────────────────────────────────────────────────────

    def draw(self, surface: pygame.Surface, app: App):
        sim = app.sim
        surface.fill((16, 16, 20))
        ox, oy, scale = self._layout(app)

        draw_tiles(surface, sim.office_map, ox, oy, scale, self.show_collision)
        if self.show_zones:
            occupied = {z.id for z in sim.office_map.all_zones()
                        if sim.workstations.is_occupied(z.id)}
            draw_zones(surface, app, sim.office_map, ox, oy, scale, occupied)

        agents = sim.ordered_agents()
        if self.show_paths:
            for agent in agents:
                draw_path(surface, agent, ox, oy, scale)
        # Lower agents draw on top
        for agent in sorted(agents, key=lambda a: a.y):
            draw_agent(surface, app, agent, ox, oy, scale,
                       agent.id == self.selected, self.show_info)

        stats = sim.assignment_stats()
        speed = f"  x{self.time_scale:.0f}" if self.time_scale != 1.0 else ""
        app.draw_text(surface,
                      f"agents {len(sim)}  desks {stats['assigned']}/{stats['total']}"
                      f"  t={sim.clock.now / 1000:.1f}s{speed}"
                      f"  sel={self.selected or '-'}",
                      8, 4, (200, 200, 200))

        if self.show_info and self.selected:
            self._draw_log(surface, app)

    def _draw_log(self, surface: pygame.Surface, app: App):
        """Last few dev-log lines for the selected agent, bottom-left."""
        lines = app.sim.dev_log.for_agent(self.selected, n=8)
        y = app.canvas_size[1] - 14 * len(lines) - 6
        for e in lines:
            app.draw_text(surface, f"{e['t'] / 1000:7.1f}s {e['cat']:<6} {e['msg']}",
                          8, y, (210, 210, 160), font=app.font_sm, bg=(0, 0, 0, 170))
            y += 14
