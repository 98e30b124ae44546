"""Main scene: routes pointer and key input into the interaction layer."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pygame

from factorish.assets.loader import ImageBundle
from factorish.engine.deferred import DeferredQueue
from factorish.engine.frame import FrameController, FrameSurfaces
from factorish.engine.input import InputMapper, key_token
from factorish.engine.logger import ChannelLogger, GameLogger, null_logger
from factorish.engine.loop import make_clock
from factorish.engine.scene import Scene
from factorish.engine.settings import Settings
from factorish.engine.storage import SaveSlot
from factorish.render.hud import HUD, ScreenLayout, minimap_scroll_delta
from factorish.render.panels import (
    MENU_ITEMS,
    STRUCTURE_CATEGORIES,
    TITLE_HEIGHT,
    PanelRenderer,
    SlotRegion,
    hit_slot,
    inventory_panel_size,
    inventory_regions,
    list_panel_size,
    list_rows,
    row_at,
    tooltip_size,
)
from factorish.sim.bridge import EngineBridge
from factorish.sim.events import (
    PopupText,
    Position,
    ShowInventory,
    ShowInventoryAt,
    UpdatePlayerInventory,
    UpdateResearch,
    UpdateStructureInventory,
)
from factorish.sim.inventory import InventorySnapshot, RecipeEntry, ResearchEntry, StructureStatus
from factorish.ui.popups import PopupQueue
from factorish.ui.selection import PlayerItem, SelectionState, Tool, ToolResult
from factorish.ui.transfer import PLAYER, InventoryTarget, TransferController
from factorish.ui.windows import (
    INVENTORY,
    MAIN_MENU,
    RECIPE_SELECT,
    RESEARCH,
    TOOLTIP,
    WindowHandle,
    WindowStack,
)

DRAG_THRESHOLD = 4
# Key name the engine rotates the structure under the cursor on.
ENGINE_ROTATE_KEY = "r"
PERF_SURFACE_SIZE = (360, 240)
WHEEL_BUTTONS = (4, 5)


class FactoryScene(Scene):
    def __init__(self, manager) -> None:
        super().__init__(manager)
        self.bridge: EngineBridge | None = None
        self.images: ImageBundle | None = None
        self.input: InputMapper | None = None
        self.logger: GameLogger | None = None
        self.log: ChannelLogger | None = None
        self.settings: Settings | None = None
        self.deferred: DeferredQueue | None = None
        self.popups: PopupQueue | None = None
        self.save_slot: SaveSlot | None = None
        self.selection: SelectionState | None = None
        self.transfer: TransferController | None = None
        self.windows: WindowStack | None = None
        self.frame: FrameController | None = None
        self.layout: ScreenLayout | None = None
        self.surfaces: FrameSurfaces | None = None
        self.hud: HUD | None = None
        self.panels: PanelRenderer | None = None
        self.tool_defs: List[Tuple[str, str]] = []
        self.structure_pos: Optional[Position] = None
        self.structure_status: Optional[StructureStatus] = None
        self.tool_rotation = 0
        self.snapshots: Dict[InventoryTarget, InventorySnapshot] = {}
        self.recipes: List[RecipeEntry] = []
        self.research: List[ResearchEntry] = []
        self.tooltip_lines: List[str] = []
        self.pointer: Tuple[int, int] = (0, 0)
        self.screen_size: Tuple[int, int] = (0, 0)
        self._press: Optional[Tuple[InventoryTarget, int, Tuple[int, int], int]] = None
        self._panning = False

    def on_enter(self, **kwargs) -> None:
        self.bridge = kwargs["bridge"]
        self.images = kwargs.get("images")
        self.input = kwargs.get("input") or InputMapper()
        self.logger = kwargs.get("logger") or null_logger()
        self.log = self.logger.channel("windows")
        self.settings = kwargs.get("settings") or Settings()
        self.deferred = kwargs.get("deferred") or DeferredQueue()
        self.popups = kwargs.get("popups") or PopupQueue()
        self.save_slot = kwargs.get("save_slot")
        self.screen_size = tuple(kwargs.get("surface_size") or self.settings.resolution)

        self.tool_defs = self.bridge.tool_defs()
        self.layout = ScreenLayout.from_size(self.screen_size, len(self.tool_defs))
        self.selection = SelectionState(self.bridge, self.deferred, self.logger)
        self.transfer = TransferController(self.bridge, self.selection, self.logger)
        self.windows = self._create_windows()
        self.windows.on_hidden(self._on_window_hidden)

        self.surfaces = FrameSurfaces(
            world=pygame.Surface(self.layout.world.size),
            minimap=pygame.Surface(self.layout.minimap.size),
            perf=pygame.Surface(PERF_SURFACE_SIZE, pygame.SRCALPHA),
        )
        clock = make_clock(self.settings.step_mode, self.settings.tick_interval, self.settings.max_step)
        self.frame = FrameController.standard(
            self.bridge,
            clock,
            self.surfaces,
            self.popups,
            view_size=lambda: self.layout.world.size,
            draw_perf=self._draw_perf,
            deferred=self.deferred,
            logger=self.logger,
        )
        self.frame.perf_enabled = self.settings.perf_overlay
        self.frame.on(UpdatePlayerInventory, lambda event: self._refresh(PLAYER))
        self.frame.on(UpdateStructureInventory, self._on_structure_inventory)
        self.frame.on(ShowInventory, lambda event: self.open_inventory(None))
        self.frame.on(ShowInventoryAt, lambda event: self.open_inventory(event.pos, event.recipe_enable))
        self.frame.on(UpdateResearch, lambda event: self._refresh_research())
        self.frame.on(PopupText, lambda event: self.popups.push(event.text, (event.x, event.y)))
        self._refresh(PLAYER)

    def on_exit(self) -> None:
        if self.windows:
            self.windows.end_drag()
        if self.transfer:
            self.transfer.cancel_drag()

    def _create_windows(self) -> WindowStack:
        stack = WindowStack(self.logger)
        width, height = inventory_panel_size(False)
        stack.register(WindowHandle(INVENTORY, size=(width, height), title="Inventory"))
        stack.register(WindowHandle(RECIPE_SELECT, size=list_panel_size(0, 360), owner=INVENTORY, title="Select recipe"))
        stack.register(WindowHandle(RESEARCH, size=list_panel_size(0), title="Research"))
        stack.register(WindowHandle(MAIN_MENU, size=list_panel_size(len(MENU_ITEMS), 200), title="Menu"))
        stack.register(WindowHandle(TOOLTIP, size=(40, 24)))
        stack.set_exclusive(INVENTORY, RESEARCH)
        return stack

    # ------------------------------------------------------------------
    # Engine callbacks, forwarded through the deferred queue
    def on_player_update(self, _payload=None) -> None:
        self.deferred.call_soon(lambda: self._refresh(PLAYER))

    def on_popup_text(self, text: str, x: float, y: float) -> None:
        self.deferred.call_soon(lambda: self.popups.push(text, (x, y)))

    # ------------------------------------------------------------------
    # Panels
    def open_inventory(self, pos: Optional[Position], recipe_enable: bool = False) -> None:
        if pos is not None:
            opened = self.bridge.open_structure_inventory(pos)
            if opened is None:
                self.log.info("No structure inventory at %s", pos)
                return
            recipe_enable = recipe_enable or opened
        if self.structure_pos is not None and pos != self.structure_pos:
            # The previous structure panel is gone; so is anything held from it.
            if self.selection.source_is_structure(self.structure_pos):
                self.selection.deselect()
            self.transfer.cancel_drag()
            self._press = None
        was_visible = self.windows.is_visible(INVENTORY)
        if pos != self.structure_pos:
            self.snapshots = {PLAYER: self.snapshots.get(PLAYER, InventorySnapshot())}
        self.structure_pos = pos
        self.windows.resize(INVENTORY, inventory_panel_size(pos is not None))
        self.windows.show(INVENTORY)
        if not was_visible:
            self.windows.place_center(INVENTORY, self.screen_size)
        self._refresh_all()
        if pos is not None and recipe_enable:
            self.recipes = self.bridge.structure_recipes(pos)
            self.windows.resize(RECIPE_SELECT, list_panel_size(len(self.recipes), 360))
            inventory = self.windows.get(INVENTORY)
            self.windows.move(RECIPE_SELECT, (inventory.position[0] + inventory.size[0] + 8, inventory.position[1]))
            self.windows.show(RECIPE_SELECT)
        elif self.windows.is_visible(RECIPE_SELECT):
            self.windows.hide(RECIPE_SELECT)

    def toggle_inventory(self) -> None:
        if self.windows.is_visible(INVENTORY):
            self.windows.hide(INVENTORY)
        else:
            self.open_inventory(None)

    def toggle_research(self) -> None:
        if self.windows.is_visible(RESEARCH):
            self.windows.hide(RESEARCH)
            return
        self._refresh_research()
        self.windows.show(RESEARCH)
        self.windows.place_center(RESEARCH, self.screen_size)

    def toggle_menu(self) -> None:
        if self.windows.toggle(MAIN_MENU):
            self.windows.place_center(MAIN_MENU, self.screen_size)

    def _on_window_hidden(self, handle: WindowHandle) -> None:
        if handle.name == INVENTORY:
            owner = self.selection.owner
            if isinstance(owner, PlayerItem) or self.selection.source_is_structure(self.structure_pos):
                self.selection.deselect()
            self.transfer.cancel_drag()
            self._press = None
            self.structure_pos = None
            self.structure_status = None
        elif handle.name == TOOLTIP:
            self.tooltip_lines = []

    def _refresh(self, target: InventoryTarget) -> None:
        if not target.is_player and target.structure_pos != self.structure_pos:
            return
        self.snapshots[target] = self.transfer.snapshot(target)

    def _refresh_status(self) -> None:
        if self.structure_pos is None:
            self.structure_status = None
        else:
            self.structure_status = self.bridge.structure_status(self.structure_pos)

    def _refresh_all(self) -> None:
        self._refresh(PLAYER)
        self._refresh_status()
        if self.structure_pos is not None:
            for category in STRUCTURE_CATEGORIES:
                self._refresh(InventoryTarget.structure(self.structure_pos, category))

    def _refresh_research(self) -> None:
        self.research = self.bridge.research_list()
        self.windows.resize(RESEARCH, list_panel_size(len(self.research)))

    def _apply_dirty(self) -> None:
        for target in self.transfer.take_dirty():
            self._refresh(target)

    def _on_structure_inventory(self, event: UpdateStructureInventory) -> None:
        if event.pos == self.structure_pos:
            self._refresh_all()

    def _regions(self) -> List[SlotRegion]:
        return inventory_regions(self.windows.get(INVENTORY), self.structure_pos)

    def _slot_under(self, pos: Tuple[int, int]) -> Optional[Tuple[SlotRegion, int]]:
        handle = self.windows.window_at(pos)
        if handle is None or handle.name != INVENTORY:
            return None
        return hit_slot(self._regions(), pos)

    # ------------------------------------------------------------------
    # Input
    def handle_event(self, event: pygame.event.Event) -> None:
        action = self.input.handle_event(event)
        if event.type == pygame.KEYDOWN:
            self._on_key(event, action)
        elif event.type == pygame.MOUSEMOTION:
            self._on_motion(event.pos, getattr(event, "buttons", (0, 0, 0)), getattr(event, "rel", (0, 0)))
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button not in WHEEL_BUTTONS:
            self._on_down(event.pos, event.button)
        elif event.type == pygame.MOUSEBUTTONUP and event.button not in WHEEL_BUTTONS:
            self._on_up(event.pos, event.button)
        elif event.type == pygame.MOUSEWHEEL:
            self._on_wheel(event.y)
        elif event.type == pygame.WINDOWLEAVE:
            self._on_leave()
        self.deferred.flush()

    def _on_key(self, event: pygame.event.Event, action: Optional[str]) -> None:
        if action == "toggle_pause":
            self.frame.toggle_pause()
            return
        if action == "toggle_perf":
            self.frame.toggle_perf()
            return
        if action == "toggle_menu":
            self.toggle_menu()
            return
        if action == "toggle_inventory":
            self.toggle_inventory()
            return
        if action == "toggle_research":
            self.toggle_research()
            return
        tool = self.input.tool_index_for_key(key_token(event.key))
        if tool is not None:
            if tool < len(self.tool_defs):
                self.select_tool(tool)
            return
        if action == "deselect" and not self.selection.is_empty:
            self.selection.deselect()
            return
        if not self.frame.running:
            return
        if action == "rotate":
            self.rotate()
            return
        self.frame.dispatch(self.bridge.key_down(pygame.key.name(event.key)))
        if action == "deselect":
            # The engine may have picked the item under the cursor.
            picked = self.bridge.selected_tool_or_item()
            if picked and self.bridge.has_selection():
                self.selection.adopt_player_item(picked[0])

    def rotate(self) -> None:
        """Turn the placement of whatever is held, or else the structure under the cursor."""

        if isinstance(self.selection.owner, (Tool, PlayerItem)):
            angle = self.bridge.rotate_tool()
            if angle is not None:
                self.tool_rotation = angle
            return
        self.frame.dispatch(self.bridge.key_down(ENGINE_ROTATE_KEY))

    def select_tool(self, index: int) -> ToolResult:
        result = self.selection.select_tool(index)
        if result is ToolResult.OPEN_INVENTORY:
            self.open_inventory(None)
        elif result is ToolResult.BELT_CHANGED:
            self._refresh(PLAYER)
        return result

    def _on_down(self, pos: Tuple[int, int], button: int) -> None:
        self.pointer = pos
        handle = self.windows.window_at(pos)
        if handle is not None and handle.name != TOOLTIP:
            self.windows.bring_to_front(handle.name)
            if button == 1 and handle.title_bar_contains(pos, TITLE_HEIGHT):
                self.windows.start_drag(handle.name, pos)
                return
            self._press_in_window(handle, pos, button)
            return
        tool = self.layout.tool_at(pos)
        if tool is not None:
            self.select_tool(tool)
            return
        offset = self.layout.minimap_offset(pos)
        if offset is not None:
            dx, dy = minimap_scroll_delta(offset)
            self.bridge.delta_viewport_pos(dx, dy, False)
            return
        world = self.layout.world_point(pos)
        if world is None:
            return
        if button == 2:
            self._panning = True
            return
        if self.frame.running:
            self.frame.dispatch(self.bridge.mouse_down(world, button - 1))

    def _press_in_window(self, handle: WindowHandle, pos: Tuple[int, int], button: int) -> None:
        if handle.name == INVENTORY:
            hit = hit_slot(self._regions(), pos)
            if hit is not None:
                self._press = (hit[0].target, hit[1], pos, button)
            return
        if handle.name == RECIPE_SELECT:
            index = row_at(list_rows(handle, len(self.recipes)), pos)
            if index is not None and self.structure_pos is not None:
                if self.bridge.select_recipe(self.structure_pos, self.recipes[index].index):
                    self.windows.hide(RECIPE_SELECT)
                    self._refresh_all()
            return
        if handle.name == RESEARCH:
            index = row_at(list_rows(handle, len(self.research)), pos)
            if index is not None and self.bridge.select_research(self.research[index].index):
                self._refresh_research()
            return
        if handle.name == MAIN_MENU:
            index = row_at(list_rows(handle, len(MENU_ITEMS)), pos)
            if index is not None:
                self._menu_action(MENU_ITEMS[index])

    def _on_motion(self, pos: Tuple[int, int], buttons, rel) -> None:
        self.pointer = pos
        if self.windows.dragging:
            self.windows.drag_to(pos)
            return
        if self._press is not None and self.transfer.drag is None and any(buttons):
            target, index, start, _button = self._press
            if abs(pos[0] - start[0]) + abs(pos[1] - start[1]) >= DRAG_THRESHOLD:
                self._press = None
                self.transfer.start_drag(target, index)
                return
        if self._panning:
            self.bridge.delta_viewport_pos(float(rel[0]), float(rel[1]), True)
            return
        self._update_tooltip(pos)
        world = self.layout.world_point(pos)
        if world is not None and self.windows.window_at(pos) is None:
            self.bridge.mouse_move(world)

    def _on_up(self, pos: Tuple[int, int], button: int) -> None:
        self.pointer = pos
        if self.windows.dragging:
            self.windows.end_drag()
            return
        if self._panning and button == 2:
            self._panning = False
            return
        if self.transfer.drag is not None:
            hit = self._slot_under(pos)
            if hit is not None:
                self.transfer.drop(hit[0].target, ctrl=self.input.ctrl_held)
                self._apply_dirty()
            else:
                self.transfer.cancel_drag()
            return
        if self._press is not None:
            target, index, _start, press_button = self._press
            self._press = None
            hit = self._slot_under(pos)
            if hit is not None and hit[0].target == target and hit[1] == index:
                self.click_slot(target, index, half=press_button == 3)
            return
        world = self.layout.world_point(pos)
        if world is not None and self.windows.window_at(pos) is None and self.frame.running:
            self.frame.dispatch(self.bridge.mouse_up(world, button - 1))

    def click_slot(self, target: InventoryTarget, index: int, half: bool = False) -> None:
        ctrl = self.input.ctrl_held
        line = self.snapshots.get(target, InventorySnapshot()).line(index)
        if line is None and self.selection.is_empty:
            self.transfer.click_empty(target, ctrl)
        else:
            self.transfer.click_slot(target, index, ctrl=ctrl, half=half)
        self._apply_dirty()

    def _on_wheel(self, amount: int) -> None:
        if not self.frame.running:
            return
        world = self.layout.world_point(self.pointer)
        if world is not None:
            self.bridge.mouse_wheel(-int(amount), world[0], world[1])

    def _on_leave(self) -> None:
        self.windows.end_drag()
        self.transfer.cancel_drag()
        self._press = None
        self._panning = False
        self.bridge.mouse_leave()

    def _update_tooltip(self, pos: Tuple[int, int]) -> None:
        handle = self.windows.window_at(pos)
        lines: List[str] = []
        owner: Optional[str] = None
        if handle is not None and handle.name == INVENTORY:
            hit = hit_slot(self._regions(), pos)
            if hit is not None:
                line = self.snapshots.get(hit[0].target, InventorySnapshot()).line(hit[1])
                if line is not None:
                    lines = [line.item_name, f"Count: {line.count}"]
                    owner = INVENTORY
        elif handle is not None and handle.name == RESEARCH:
            index = row_at(list_rows(handle, len(self.research)), pos)
            if index is not None:
                entry = self.research[index]
                lines = [entry.tag] + ([f"Unlocks: {', '.join(entry.unlocks)}"] if entry.unlocks else [])
                owner = RESEARCH
        elif handle is None:
            tool = self.layout.tool_at(pos)
            if tool is not None:
                name, desc = self.tool_defs[tool]
                lines = [name] + ([desc] if desc else [])
        if not lines:
            if self.windows.is_visible(TOOLTIP):
                self.windows.hide(TOOLTIP)
            return
        self.tooltip_lines = lines
        self.windows.set_owner(TOOLTIP, owner)
        self.windows.resize(TOOLTIP, tooltip_size(lines))
        self.windows.move(TOOLTIP, (pos[0] + 16, pos[1] + 16))
        self.windows.show(TOOLTIP)

    def _menu_action(self, label: str) -> None:
        if label == "Resume":
            self.windows.hide(MAIN_MENU)
        elif label == "Save game":
            self.save()
        elif label == "Quit":
            self.manager.request_quit()

    def save(self) -> bool:
        blob = self.bridge.serialize()
        if blob is None or self.save_slot is None:
            return False
        if not self.save_slot.save(blob):
            return False
        self.logger.channel("engine").info("Saved game to %s", self.save_slot.path)
        return True

    # ------------------------------------------------------------------
    def tick(self) -> None:
        self.frame.tick()
        self._apply_dirty()
        if self.structure_pos is not None and self.windows.is_visible(INVENTORY):
            self._refresh_status()
        self.deferred.flush()

    def _ensure_renderers(self) -> None:
        if self.hud is None:
            self.hud = HUD(self.layout)
        if self.panels is None:
            self.panels = PanelRenderer(self.images.icon if self.images else lambda name: None)

    def _draw_perf(self, surface: pygame.Surface, labels) -> None:
        self._ensure_renderers()
        self.hud.draw_perf(surface, labels)

    def _info_lines(self) -> List[str]:
        held = self.selection.held_item_name
        return [
            "Running" if self.frame.running else "Paused",
            f"Time: {self.frame.sim_time:.1f} s",
            f"Holding: {held or '-'}",
            f"Rotation: {self.tool_rotation * 90} deg",
        ]

    def render(self, surface: pygame.Surface) -> None:
        self._ensure_renderers()
        surface.fill((0, 0, 0))
        self.hud.draw_views(surface, self.surfaces.world, self.surfaces.minimap)
        self.hud.draw_toolbar(
            surface,
            self.bridge.render_tool,
            self.bridge.tool_inventory(),
            self.selection.belt_cursor_index,
        )
        self.hud.draw_info(surface, self._info_lines())
        self.hud.draw_popups(surface, self.popups)
        for handle in self.windows.visible_handles():
            self._draw_window(surface, handle)
        if self.frame.perf_enabled:
            surface.blit(self.surfaces.perf, (self.layout.world.x + 8, self.layout.world.y + 8))
        if self.selection.held_item_visible:
            name = self.selection.held_item_name
            self.hud.draw_held_item(surface, self.panels.icon(name), name, self.pointer)

    def _draw_window(self, surface: pygame.Surface, handle: WindowHandle) -> None:
        if handle.name == INVENTORY:
            self.panels.draw_inventory(surface, handle, self._regions(), self.snapshots, self.structure_status)
        elif handle.name == RECIPE_SELECT:
            self.panels.draw_recipes(surface, handle, self.recipes)
        elif handle.name == RESEARCH:
            self.panels.draw_research(surface, handle, self.research)
        elif handle.name == MAIN_MENU:
            self.panels.draw_menu(surface, handle)
        elif handle.name == TOOLTIP:
            self.panels.draw_tooltip(surface, handle, self.tooltip_lines)


__all__ = ["FactoryScene"]
