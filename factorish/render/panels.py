"""Pygame drawing and hit-testing for the floating panels."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pygame

from factorish.sim.events import Position
from factorish.sim.inventory import InventorySnapshot, RecipeEntry, ResearchEntry, SlotCategory, StructureStatus
from factorish.ui.transfer import PLAYER, InventoryTarget
from factorish.ui.windows import WindowHandle

SLOT_SIZE = 32
SLOT_COLUMNS = 10
PLAYER_ROWS = 4
TITLE_HEIGHT = 20
LABEL_HEIGHT = 16
SECTION_GAP = 6
PANEL_PADDING = 8
ROW_HEIGHT = 36
STATUS_BAR_HEIGHT = 10
STATUS_ROW = 14
STATUS_LABEL_WIDTH = 64
STATUS_HEIGHT = 2 * STATUS_ROW + SECTION_GAP

STRUCTURE_CATEGORIES = (
    SlotCategory.INPUT,
    SlotCategory.OUTPUT,
    SlotCategory.BURNER,
    SlotCategory.STORAGE,
)

MENU_ITEMS = ("Resume", "Save game", "Quit")

PANEL_BG = (18, 32, 42)
PANEL_BORDER = (80, 150, 180)
TITLE_BG = (30, 60, 80)
TEXT_COLOR = (200, 220, 255)
MUTED_TEXT = (140, 160, 180)
SLOT_BG = (40, 56, 70)
SLOT_BORDER = (70, 96, 120)
SELECTED_BORDER = (255, 200, 120)
UNLOCKED_COLOR = (170, 230, 170)
TOOLTIP_BG = (255, 255, 127)
TOOLTIP_BORDER = (0, 0, 255)
PROGRESS_COLOR = (120, 200, 120)
FUEL_COLOR = (230, 150, 60)


@dataclass
class SlotRegion:
    """Grid of inventory slots belonging to one inventory target."""

    target: InventoryTarget
    label: str
    rect: pygame.Rect

    @property
    def capacity(self) -> int:
        return (self.rect.width // SLOT_SIZE) * (self.rect.height // SLOT_SIZE)

    def slot_rect(self, index: int) -> pygame.Rect:
        col = index % SLOT_COLUMNS
        row = index // SLOT_COLUMNS
        return pygame.Rect(self.rect.x + col * SLOT_SIZE, self.rect.y + row * SLOT_SIZE, SLOT_SIZE, SLOT_SIZE)

    def slot_at(self, point: Tuple[float, float]) -> Optional[int]:
        if not self.rect.collidepoint(point):
            return None
        col = int(point[0] - self.rect.x) // SLOT_SIZE
        row = int(point[1] - self.rect.y) // SLOT_SIZE
        return row * SLOT_COLUMNS + col


def inventory_panel_size(has_structure: bool) -> Tuple[int, int]:
    width = SLOT_COLUMNS * SLOT_SIZE + PANEL_PADDING * 2
    height = TITLE_HEIGHT + PANEL_PADDING * 2 + LABEL_HEIGHT + PLAYER_ROWS * SLOT_SIZE
    if has_structure:
        height += STATUS_HEIGHT
        height += len(STRUCTURE_CATEGORIES) * (LABEL_HEIGHT + SLOT_SIZE + SECTION_GAP)
    return width, height


def inventory_regions(handle: WindowHandle, structure_pos: Optional[Position]) -> List[SlotRegion]:
    """Slot grids of the inventory panel in surface coordinates."""

    x = int(handle.position[0]) + PANEL_PADDING
    y = int(handle.position[1]) + TITLE_HEIGHT + PANEL_PADDING
    width = SLOT_COLUMNS * SLOT_SIZE
    regions: List[SlotRegion] = []
    if structure_pos is not None:
        y += STATUS_HEIGHT
        for category in STRUCTURE_CATEGORIES:
            y += LABEL_HEIGHT
            regions.append(
                SlotRegion(
                    target=InventoryTarget.structure(structure_pos, category),
                    label=category.value,
                    rect=pygame.Rect(x, y, width, SLOT_SIZE),
                )
            )
            y += SLOT_SIZE + SECTION_GAP
    y += LABEL_HEIGHT
    regions.append(SlotRegion(target=PLAYER, label="Player", rect=pygame.Rect(x, y, width, PLAYER_ROWS * SLOT_SIZE)))
    return regions


def status_bar_rects(handle: WindowHandle) -> Tuple[pygame.Rect, pygame.Rect]:
    """Progress and fuel bars at the top of a structure inventory panel."""

    x = int(handle.position[0]) + PANEL_PADDING + STATUS_LABEL_WIDTH
    y = int(handle.position[1]) + TITLE_HEIGHT + PANEL_PADDING
    width = SLOT_COLUMNS * SLOT_SIZE - STATUS_LABEL_WIDTH
    return (
        pygame.Rect(x, y, width, STATUS_BAR_HEIGHT),
        pygame.Rect(x, y + STATUS_ROW, width, STATUS_BAR_HEIGHT),
    )


def hit_slot(regions: Sequence[SlotRegion], point: Tuple[float, float]) -> Optional[Tuple[SlotRegion, int]]:
    for region in regions:
        index = region.slot_at(point)
        if index is not None:
            return region, index
    return None


def list_rows(handle: WindowHandle, count: int) -> List[pygame.Rect]:
    x = int(handle.position[0]) + PANEL_PADDING
    y = int(handle.position[1]) + TITLE_HEIGHT + PANEL_PADDING
    width = handle.size[0] - PANEL_PADDING * 2
    return [pygame.Rect(x, y + i * ROW_HEIGHT, width, ROW_HEIGHT - 2) for i in range(count)]


def list_panel_size(count: int, width: int = 320) -> Tuple[int, int]:
    return width, TITLE_HEIGHT + PANEL_PADDING * 2 + max(1, count) * ROW_HEIGHT


def row_at(rows: Sequence[pygame.Rect], point: Tuple[float, float]) -> Optional[int]:
    for index, rect in enumerate(rows):
        if rect.collidepoint(point):
            return index
    return None


def recipe_label(recipe: RecipeEntry) -> str:
    inputs = ", ".join(f"{name} x{count}" for name, count in recipe.inputs.items())
    outputs = ", ".join(f"{name} x{count}" for name, count in recipe.outputs.items())
    return f"{inputs or '-'} -> {outputs or '-'} ({recipe.recipe_time:g}s)"


def research_label(entry: ResearchEntry) -> str:
    state = "done" if entry.unlocked else f"{entry.steps} x {entry.research_time:g}s"
    return f"{entry.tag} [{state}]"


class PanelRenderer:
    """Draws window frames and their contents onto the UI surface."""

    def __init__(self, icon_lookup: Callable[[str], Optional[pygame.Surface]]) -> None:
        self.font = pygame.font.SysFont("consolas", 14)
        self.small_font = pygame.font.SysFont("consolas", 11)
        self._icon_lookup = icon_lookup
        self._scaled: Dict[str, Optional[pygame.Surface]] = {}

    def icon(self, item_name: str, size: int = SLOT_SIZE - 2) -> Optional[pygame.Surface]:
        key = f"{item_name}@{size}"
        if key not in self._scaled:
            source = self._icon_lookup(item_name)
            self._scaled[key] = pygame.transform.smoothscale(source, (size, size)) if source else None
        return self._scaled[key]

    # ------------------------------------------------------------------
    def draw_frame(self, surface: pygame.Surface, handle: WindowHandle) -> pygame.Rect:
        rect = pygame.Rect(int(handle.position[0]), int(handle.position[1]), *handle.size)
        pygame.draw.rect(surface, PANEL_BG, rect)
        pygame.draw.rect(surface, TITLE_BG, (rect.x, rect.y, rect.width, TITLE_HEIGHT))
        pygame.draw.rect(surface, PANEL_BORDER, rect, 1)
        if handle.title:
            title = self.font.render(handle.title, True, TEXT_COLOR)
            surface.blit(title, (rect.x + 6, rect.y + 3))
        return rect

    def draw_slots(
        self,
        surface: pygame.Surface,
        region: SlotRegion,
        snapshot: InventorySnapshot,
    ) -> None:
        label = self.small_font.render(region.label, True, MUTED_TEXT)
        surface.blit(label, (region.rect.x, region.rect.y - LABEL_HEIGHT + 2))
        for index in range(region.capacity):
            rect = region.slot_rect(index)
            pygame.draw.rect(surface, SLOT_BG, rect)
            line = snapshot.line(index)
            border = SLOT_BORDER
            if line is not None:
                icon = self.icon(line.item_name)
                if icon is not None:
                    surface.blit(icon, (rect.x + 1, rect.y + 1))
                else:
                    name = self.small_font.render(line.item_name[:4], True, TEXT_COLOR)
                    surface.blit(name, (rect.x + 2, rect.y + 2))
                count = self.small_font.render(str(line.count), True, TEXT_COLOR)
                surface.blit(count, (rect.right - count.get_width() - 2, rect.bottom - count.get_height()))
                if snapshot.selected and line.item_name == snapshot.selected:
                    border = SELECTED_BORDER
            pygame.draw.rect(surface, border, rect, 1)

    def draw_inventory(
        self,
        surface: pygame.Surface,
        handle: WindowHandle,
        regions: Sequence[SlotRegion],
        snapshots: Mapping[InventoryTarget, InventorySnapshot],
        status: Optional[StructureStatus] = None,
    ) -> None:
        self.draw_frame(surface, handle)
        if status is not None:
            self.draw_status(surface, handle, status)
        for region in regions:
            self.draw_slots(surface, region, snapshots.get(region.target, InventorySnapshot()))

    def draw_status(self, surface: pygame.Surface, handle: WindowHandle, status: StructureStatus) -> None:
        progress_rect, fuel_rect = status_bar_rects(handle)
        bars = (
            ("Progress", progress_rect, status.progress_ratio, PROGRESS_COLOR),
            ("Fuel", fuel_rect, status.energy_ratio, FUEL_COLOR),
        )
        for label, rect, ratio, color in bars:
            text = self.small_font.render(label, True, MUTED_TEXT)
            surface.blit(text, (rect.x - STATUS_LABEL_WIDTH, rect.y - 1))
            pygame.draw.rect(surface, SLOT_BG, rect)
            if ratio:
                pygame.draw.rect(surface, color, (rect.x, rect.y, max(1, round(rect.width * ratio)), rect.height))
            pygame.draw.rect(surface, SLOT_BORDER, rect, 1)

    def draw_list(
        self,
        surface: pygame.Surface,
        handle: WindowHandle,
        labels: Sequence[str],
        highlighted: Sequence[bool] = (),
        empty_text: str = "Nothing available",
    ) -> None:
        self.draw_frame(surface, handle)
        rows = list_rows(handle, len(labels))
        if not rows:
            text = self.font.render(empty_text, True, MUTED_TEXT)
            surface.blit(text, (handle.position[0] + PANEL_PADDING, handle.position[1] + TITLE_HEIGHT + PANEL_PADDING))
            return
        for index, (rect, label) in enumerate(zip(rows, labels)):
            pygame.draw.rect(surface, SLOT_BG, rect)
            pygame.draw.rect(surface, SLOT_BORDER, rect, 1)
            color = UNLOCKED_COLOR if index < len(highlighted) and highlighted[index] else TEXT_COLOR
            text = self.font.render(label, True, color)
            surface.blit(text, (rect.x + 6, rect.y + (rect.height - text.get_height()) // 2))

    def draw_recipes(self, surface: pygame.Surface, handle: WindowHandle, recipes: Sequence[RecipeEntry]) -> None:
        self.draw_list(surface, handle, [recipe_label(r) for r in recipes], empty_text="No recipes")

    def draw_research(self, surface: pygame.Surface, handle: WindowHandle, entries: Sequence[ResearchEntry]) -> None:
        self.draw_list(
            surface,
            handle,
            [research_label(e) for e in entries],
            highlighted=[e.unlocked for e in entries],
            empty_text="No research",
        )

    def draw_menu(self, surface: pygame.Surface, handle: WindowHandle) -> None:
        self.draw_list(surface, handle, MENU_ITEMS)

    def draw_tooltip(self, surface: pygame.Surface, handle: WindowHandle, lines: Sequence[str]) -> None:
        rect = pygame.Rect(int(handle.position[0]), int(handle.position[1]), *handle.size)
        pygame.draw.rect(surface, TOOLTIP_BG, rect)
        pygame.draw.rect(surface, TOOLTIP_BORDER, rect, 1)
        for i, line in enumerate(lines):
            text = self.font.render(line, True, (0, 0, 0))
            surface.blit(text, (rect.x + 4, rect.y + 4 + i * 16))


def tooltip_size(lines: Sequence[str]) -> Tuple[int, int]:
    longest = max((len(line) for line in lines), default=0)
    return max(40, longest * 8 + 8), max(1, len(lines)) * 16 + 8


__all__ = [
    "MENU_ITEMS",
    "PanelRenderer",
    "SLOT_COLUMNS",
    "SLOT_SIZE",
    "STRUCTURE_CATEGORIES",
    "SlotRegion",
    "TITLE_HEIGHT",
    "hit_slot",
    "inventory_panel_size",
    "inventory_regions",
    "list_panel_size",
    "list_rows",
    "recipe_label",
    "research_label",
    "row_at",
    "status_bar_rects",
    "tooltip_size",
]
