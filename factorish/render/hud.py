"""Screen layout plus tool belt, cursor, popup and overlay drawing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import pygame

from factorish.engine.frame import TILE_SIZE
from factorish.ui.popups import PopupEntry

MINIMAP_SIZE = 200
TABLE_MARGIN = 10
TOOLBAR_PADDING = 4
TOOL_SIZE = 32

TOOLBAR_BORDER = (255, 0, 0)
TOOL_BORDER = (0, 0, 0)
TOOL_CURSOR = (0, 0, 255)
INFO_BG = (255, 255, 127)
INFO_BORDER = (0, 0, 255)
POPUP_COLOR = (255, 255, 255)
PERF_BG = (0, 0, 0, 160)
PERF_TEXT = (200, 220, 255)


@dataclass
class ScreenLayout:
    """Rectangles for the world view, minimap, info box and tool belt."""

    world: pygame.Rect
    minimap: pygame.Rect
    info: pygame.Rect
    toolbar: pygame.Rect
    tool_count: int

    @classmethod
    def from_size(cls, size: Tuple[int, int], tool_count: int) -> "ScreenLayout":
        width, height = size
        toolbar_height = TOOL_SIZE + TOOLBAR_PADDING * 2
        world = pygame.Rect(
            0,
            0,
            max(TOOL_SIZE, width - MINIMAP_SIZE - TABLE_MARGIN * 2),
            max(TOOL_SIZE, height - toolbar_height - TABLE_MARGIN),
        )
        minimap = pygame.Rect(world.right + TABLE_MARGIN, 0, MINIMAP_SIZE, MINIMAP_SIZE)
        info = pygame.Rect(
            minimap.x,
            minimap.bottom + TABLE_MARGIN,
            MINIMAP_SIZE,
            max(0, world.height - MINIMAP_SIZE - TABLE_MARGIN),
        )
        toolbar_width = (tool_count + 1) * TOOL_SIZE + TOOLBAR_PADDING * 2
        toolbar = pygame.Rect(
            world.centerx - toolbar_width // 2,
            world.bottom + TABLE_MARGIN // 2,
            toolbar_width,
            toolbar_height,
        )
        return cls(world=world, minimap=minimap, info=info, toolbar=toolbar, tool_count=tool_count)

    def tool_rect(self, index: int) -> pygame.Rect:
        return pygame.Rect(
            self.toolbar.x + TOOLBAR_PADDING + index * TOOL_SIZE,
            self.toolbar.y + TOOLBAR_PADDING,
            TOOL_SIZE - 1,
            TOOL_SIZE - 1,
        )

    def tool_at(self, point: Tuple[float, float]) -> Optional[int]:
        for index in range(self.tool_count):
            if self.tool_rect(index).collidepoint(point):
                return index
        return None

    def world_point(self, point: Tuple[float, float]) -> Optional[Tuple[float, float]]:
        if not self.world.collidepoint(point):
            return None
        return point[0] - self.world.x, point[1] - self.world.y

    def minimap_offset(self, point: Tuple[float, float]) -> Optional[Tuple[float, float]]:
        """Tile offset of a minimap click from the minimap centre."""

        if not self.minimap.collidepoint(point):
            return None
        return point[0] - self.minimap.centerx, point[1] - self.minimap.centery


def minimap_scroll_delta(offset: Tuple[float, float]) -> Tuple[float, float]:
    """Viewport delta in pixels that centres the clicked minimap tile."""

    return -offset[0] * TILE_SIZE, -offset[1] * TILE_SIZE


class HUD:
    def __init__(self, layout: ScreenLayout) -> None:
        self.layout = layout
        self.font = pygame.font.SysFont("consolas", 16)
        self.small_font = pygame.font.SysFont("consolas", 12)
        self._tool_surface = pygame.Surface((TOOL_SIZE, TOOL_SIZE), pygame.SRCALPHA)

    def draw_views(self, surface: pygame.Surface, world: pygame.Surface, minimap: pygame.Surface) -> None:
        surface.blit(world, self.layout.world.topleft)
        surface.blit(minimap, self.layout.minimap.topleft)
        pygame.draw.rect(surface, (0, 0, 0), self.layout.minimap, 1)

    def draw_toolbar(
        self,
        surface: pygame.Surface,
        render_tool: Callable[[int, pygame.Surface], None],
        counts: Sequence[int],
        cursor_index: Optional[int],
    ) -> None:
        layout = self.layout
        pygame.draw.rect(surface, (255, 255, 255), layout.toolbar)
        pygame.draw.rect(surface, TOOLBAR_BORDER, layout.toolbar, 1)
        for index in range(layout.tool_count):
            rect = layout.tool_rect(index)
            self._tool_surface.fill((0, 0, 0, 0))
            render_tool(index, self._tool_surface)
            surface.blit(self._tool_surface, rect.topleft)
            pygame.draw.rect(surface, TOOL_BORDER, rect, 1)
            if index < len(counts) and counts[index] > 0:
                text = self.small_font.render(str(counts[index]), True, (0, 0, 0))
                surface.blit(text, (rect.right - text.get_width() - 1, rect.bottom - text.get_height()))
        if cursor_index is not None and 0 <= cursor_index < layout.tool_count:
            pygame.draw.rect(surface, TOOL_CURSOR, layout.tool_rect(cursor_index), 2)

    def draw_info(self, surface: pygame.Surface, lines: Iterable[str]) -> None:
        rect = self.layout.info
        if rect.height <= 0:
            return
        pygame.draw.rect(surface, INFO_BG, rect)
        pygame.draw.rect(surface, INFO_BORDER, rect, 1)
        for i, line in enumerate(lines):
            text = self.font.render(line, True, (0, 0, 0))
            surface.blit(text, (rect.x + 6, rect.y + 6 + i * 18))

    def draw_popups(self, surface: pygame.Surface, popups: Iterable[PopupEntry]) -> None:
        origin = self.layout.world.topleft
        for entry in popups:
            for i, line in enumerate(entry.lines()):
                text = self.font.render(line, True, POPUP_COLOR)
                text.set_alpha(int(255 * entry.alpha))
                x = origin[0] + entry.position[0] - text.get_width() / 2
                y = origin[1] + entry.position[1] + i * 18
                surface.blit(text, (x, y))

    def draw_held_item(
        self,
        surface: pygame.Surface,
        icon: Optional[pygame.Surface],
        name: Optional[str],
        pointer: Tuple[int, int],
    ) -> None:
        if name is None:
            return
        if icon is not None:
            surface.blit(icon, (pointer[0] - icon.get_width() // 2, pointer[1] - icon.get_height() // 2))
            return
        text = self.small_font.render(name, True, (255, 255, 255))
        surface.blit(text, pointer)

    def draw_perf(self, surface: pygame.Surface, labels: Sequence[str]) -> None:
        lines: List[str] = list(labels)
        if not lines:
            return
        width = max(self.small_font.size(line)[0] for line in lines) + 12
        panel = pygame.Surface((width, len(lines) * 14 + 8), pygame.SRCALPHA)
        panel.fill(PERF_BG)
        for i, line in enumerate(lines):
            panel.blit(self.small_font.render(line, True, PERF_TEXT), (6, 4 + i * 14))
        surface.fill((0, 0, 0, 0))
        surface.blit(panel, (0, 0))


__all__ = ["HUD", "MINIMAP_SIZE", "ScreenLayout", "TOOL_SIZE", "minimap_scroll_delta"]
