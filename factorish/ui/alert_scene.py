"""Blocking message shown when start-up fails."""
from __future__ import annotations

import pygame

from factorish.engine.scene import Scene

ALERT_BG = (40, 0, 0)
ALERT_TEXT = (255, 220, 220)
HINT_TEXT = (200, 160, 160)


def wrap_text(message: str, width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in message.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}".strip()
            if len(candidate) > width and current:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


class AlertScene(Scene):
    """Shows one error message; any key or click exits."""

    def __init__(self, manager) -> None:
        super().__init__(manager)
        self.message = ""
        self.font: pygame.font.Font | None = None

    def on_enter(self, **kwargs) -> None:
        self.message = str(kwargs.get("message", "Initialization failed"))
        logger = kwargs.get("logger")
        if logger is not None:
            logger.channel("engine").error("Initialization failed: %s", self.message)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
            self.manager.request_quit()

    def render(self, surface: pygame.Surface) -> None:
        if self.font is None:
            self.font = pygame.font.SysFont("consolas", 18)
        surface.fill(ALERT_BG)
        width, height = surface.get_size()
        lines = wrap_text(self.message, max(20, width // 11 - 8))
        y = height // 2 - len(lines) * 12
        for line in lines:
            text = self.font.render(line, True, ALERT_TEXT)
            surface.blit(text, ((width - text.get_width()) // 2, y))
            y += 24
        hint = self.font.render("Press any key to exit", True, HINT_TEXT)
        surface.blit(hint, ((width - hint.get_width()) // 2, y + 24))


__all__ = ["AlertScene", "wrap_text"]
