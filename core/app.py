"""
core/app.py — Pygame viewer shell

The viewer renders the office at its native pixel size onto an
off-screen canvas and letterboxes that canvas into whatever window size
the user picks, keeping the aspect ratio.  Scenes sit on a stack and
only the top one is live; they reach the simulation as ``app.sim``.

    app = App(sim, title="Office", size=(1200, 984))
    app.push_scene(OfficeScene())
    app.run()
"""

from __future__ import annotations
from typing import TYPE_CHECKING

import pygame
from core.scene import Scene

if TYPE_CHECKING:
    from simulation.office_sim import OfficeSim

BACKGROUND = (10, 10, 14)


class App:
    fps = 60
    max_dt = 0.1        # seconds; a stalled window must not teleport agents

    def __init__(self, sim: "OfficeSim", title: str = "Office",
                 size: tuple[int, int] = (1200, 984)):
        pygame.init()
        pygame.display.set_caption(title)
        self.sim = sim
        self.canvas_size = size
        self.canvas = pygame.Surface(size)
        self.window = pygame.display.set_mode(size, pygame.RESIZABLE)
        self.frame_clock = pygame.time.Clock()
        self.running = True
        self.fullscreen = False
        self._restore_size = size
        self._stack: list[Scene] = []

        self.font = pygame.font.SysFont("monospace", 14)
        self.font_sm = pygame.font.SysFont("monospace", 11)

    # ── scene stack ──────────────────────────────────────────────────

    @property
    def scene(self) -> Scene | None:
        return self._stack[-1] if self._stack else None

    def push_scene(self, scene: Scene):
        if self._stack:
            self._stack[-1].on_exit(self)
        self._stack.append(scene)
        scene.on_enter(self)

    def pop_scene(self):
        if not self._stack:
            return
        self._stack.pop().on_exit(self)
        if self._stack:
            self._stack[-1].on_enter(self)

    # ── letterboxing ─────────────────────────────────────────────────

    def _viewport(self) -> pygame.Rect:
        """Where the canvas lands inside the window."""
        ww, wh = self.window.get_size()
        cw, ch = self.canvas_size
        k = min(ww / cw, wh / ch)
        w, h = int(cw * k), int(ch * k)
        return pygame.Rect((ww - w) // 2, (wh - h) // 2, w, h)

    def to_canvas(self, pos: tuple[int, int]) -> tuple[int, int] | None:
        """Window pixel → canvas pixel, or None over the letterbox bars."""
        view = self._viewport()
        if not view.collidepoint(pos):
            return None
        cw, ch = self.canvas_size
        return (int((pos[0] - view.x) * cw / view.w),
                int((pos[1] - view.y) * ch / view.h))

    def _present(self):
        view = self._viewport()
        self.window.fill(BACKGROUND)
        self.window.blit(pygame.transform.smoothscale(self.canvas, view.size),
                         view.topleft)
        pygame.display.flip()

    def toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        if self.fullscreen:
            self._restore_size = self.window.get_size()
            self.window = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self.window = pygame.display.set_mode(self._restore_size,
                                                  pygame.RESIZABLE)

    # ── frame loop ───────────────────────────────────────────────────

    def _pump_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_F11:
                self.toggle_fullscreen()
            elif event.type == pygame.VIDEORESIZE and not self.fullscreen:
                self.window = pygame.display.set_mode(event.size, pygame.RESIZABLE)
            elif self.scene is not None:
                self.scene.handle_event(event, self)

    def run(self):
        while self.running:
            dt = min(self.frame_clock.tick(self.fps) / 1000.0, self.max_dt)
            self._pump_events()
            scene = self.scene
            if scene is not None:
                scene.update(dt, self)
                scene.draw(self.canvas, self)
            self._present()
        pygame.quit()

    # ── text ─────────────────────────────────────────────────────────

    def draw_text(self, surface: pygame.Surface, text: str, x: int, y: int,
                  color=(255, 255, 255), font=None, bg=None, pad: int = 2):
        """Blit *text* at (x, y); with *bg*, on a translucent box."""
        img = (font or self.font).render(text, True, color)
        if bg is not None:
            box = pygame.Surface((img.get_width() + pad * 2,
                                  img.get_height() + pad * 2), pygame.SRCALPHA)
            box.fill(bg)
            surface.blit(box, (x - pad, y - pad))
        return surface.blit(img, (x, y))
