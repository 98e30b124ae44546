"""Scene switching between the factory view and start-up alerts."""
from __future__ import annotations

from typing import Callable, Dict, Optional

import pygame


class Scene:
    """Base scene interface."""

    def __init__(self, manager: "SceneManager") -> None:
        self.manager = manager

    def on_enter(self, **kwargs) -> None:  # pragma: no cover - hooks
        pass

    def on_exit(self) -> None:  # pragma: no cover - hooks
        pass

    def handle_event(self, event: pygame.event.Event) -> None:
        pass

    def tick(self) -> None:
        pass

    def render(self, surface: pygame.Surface) -> None:
        pass


SceneFactory = Callable[["SceneManager"], Scene]


class SceneManager:
    """Owns the active scene and the shared context handed to new scenes."""

    def __init__(self) -> None:
        self._factories: Dict[str, SceneFactory] = {}
        self._active: Optional[Scene] = None
        self._active_name: Optional[str] = None
        self.context: Dict[str, object] = {}
        self.quit_requested = False

    def register(self, name: str, factory: SceneFactory) -> None:
        self._factories[name] = factory

    def activate(self, name: str, **kwargs) -> Scene:
        if name not in self._factories:
            raise KeyError(f"Scene '{name}' is not registered")
        if self._active:
            self._active.on_exit()
        self._active = self._factories[name](self)
        self._active_name = name
        self._active.on_enter(**{**self.context, **kwargs})
        return self._active

    def set_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    @property
    def active_name(self) -> Optional[str]:
        return self._active_name

    def active(self) -> Optional[Scene]:
        return self._active

    def request_quit(self) -> None:
        self.quit_requested = True

    def handle_event(self, event: pygame.event.Event) -> None:
        if self._active:
            self._active.handle_event(event)

    def tick(self) -> None:
        if self._active:
            self._active.tick()

    def render(self, surface: pygame.Surface) -> None:
        if self._active:
            self._active.render(surface)

    def shutdown(self) -> None:
        if self._active:
            self._active.on_exit()
            self._active = None
            self._active_name = None


__all__ = ["Scene", "SceneFactory", "SceneManager"]
