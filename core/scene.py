"""
core/scene.py — Viewer scene interface

The app keeps a stack of scenes; only the top one receives events,
updates and draws.  The office view is the only scene today, but dev
overlays push on top the same way.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pygame
    from core.app import App


class Scene:
    def on_enter(self, app: App):
        """Scene became the top of the stack."""
        pass

    def on_exit(self, app: App):
        pass

    def handle_event(self, event: pygame.event.Event, app: App):
        pass

    def update(self, dt: float, app: App):
        """dt is seconds since the last frame."""
        pass

    def draw(self, surface: pygame.Surface, app: App):
        pass
