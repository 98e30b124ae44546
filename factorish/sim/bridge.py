"""Call boundary to the opaque simulation engine."""
from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import pygame

from factorish.engine.logger import ChannelLogger, GameLogger, null_logger
from factorish.errors import EngineError, EngineLoadError
from factorish.sim.events import EngineEvent, Position, decode_events
from factorish.sim.inventory import (
    InventorySnapshot,
    RecipeEntry,
    ResearchEntry,
    SlotCategory,
    StructureStatus,
)

# Failures an engine may raise for a call it rejects; anything else is a bug
# in the engine and propagates.
RECOVERABLE_ERRORS = (EngineError, LookupError, ValueError)


class EngineProtocol(Protocol):
    """Methods the shell calls on the simulation engine."""

    def tool_defs(self) -> Sequence[Sequence[str]]: ...

    def select_tool(self, index: int) -> Any: ...

    def get_selected_tool(self) -> Optional[int]: ...

    def get_selected_tool_or_item(self) -> Optional[Sequence[Any]]: ...

    def get_selected_item_type(self) -> Any: ...

    def deselect_inventory(self) -> None: ...

    def get_player_inventory(self) -> Any: ...

    def select_player_inventory(self, index: int, half: bool) -> Any: ...

    def open_structure_inventory(self, x: int, y: int) -> bool: ...

    def get_structure_inventory(self, x: int, y: int, category: str) -> Any: ...

    def select_structure_inventory(self, index: int, category: str, half: bool) -> Any: ...

    def move_selected_inventory_item(self, to_player: bool, category: str, all: bool) -> bool: ...

    def move_all_inventory_items(self, to_player: bool, category: str) -> bool: ...

    def get_structure_progress(self, x: int, y: int) -> Optional[float]: ...

    def get_structure_burner_energy(self, x: int, y: int) -> Optional[Sequence[float]]: ...

    def get_structure_recipes(self, x: int, y: int) -> Any: ...

    def select_recipe(self, x: int, y: int, index: int) -> bool: ...

    def get_research_list(self) -> Any: ...

    def select_research(self, index: int) -> bool: ...

    def simulate(self, delta_time: float) -> Any: ...

    def render(self, surface: pygame.Surface) -> Any: ...

    def render_minimap(self, surface: pygame.Surface) -> Any: ...

    def render_tool(self, index: int, surface: pygame.Surface) -> Any: ...

    def tool_inventory(self) -> Sequence[int]: ...

    def render_perf(self, surface: pygame.Surface) -> Sequence[str]: ...

    def get_viewport_scale(self) -> float: ...

    def delta_viewport_pos(self, x: float, y: float, scale_relative: bool) -> Any: ...

    def mouse_down(self, pos: Tuple[float, float], button: int) -> Any: ...

    def mouse_up(self, pos: Tuple[float, float], button: int) -> Any: ...

    def mouse_move(self, pos: Tuple[float, float]) -> Any: ...

    def mouse_leave(self) -> Any: ...

    def mouse_wheel(self, delta: int, x: float, y: float) -> Any: ...

    def on_key_down(self, key: str) -> Any: ...

    def rotate_tool(self) -> int: ...

    def serialize_game(self) -> str: ...

    def deserialize_game(self, data: str) -> Any: ...


EngineFactory = Callable[..., EngineProtocol]


def load_engine_factory(path: Optional[str]) -> EngineFactory:
    """Resolve ``"package.module:Attribute"`` to an engine factory."""

    if not path:
        raise EngineLoadError("No simulation engine configured (settings.json 'engine')")
    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise EngineLoadError(f"Cannot import engine module '{module_name}': {exc}") from exc
    target: Any = module
    for part in (attr or "create_engine").split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise EngineLoadError(f"Engine factory '{path}' not found") from exc
    if not callable(target):
        raise EngineLoadError(f"Engine factory '{path}' is not callable")
    return target


def create_engine(
    factory: EngineFactory,
    images: Dict[str, pygame.Surface],
    on_player_update: Callable[[Any], None],
    on_popup_text: Callable[[str, float, float], None],
) -> EngineProtocol:
    try:
        return factory(images, on_player_update=on_player_update, on_popup_text=on_popup_text)
    except EngineLoadError:
        raise
    except Exception as exc:
        raise EngineLoadError(f"Engine construction failed: {exc}") from exc


class EngineBridge:
    """Normalises engine answers and turns rejected calls into falsy results."""

    def __init__(self, engine: EngineProtocol, logger: Optional[GameLogger] = None) -> None:
        self.engine = engine
        self.log: ChannelLogger = (logger or null_logger()).channel("engine")

    def _call(self, name: str, *args, default: Any = None) -> Any:
        try:
            return getattr(self.engine, name)(*args)
        except RECOVERABLE_ERRORS as exc:
            self.log.warning("Engine rejected %s%r: %s", name, args, exc)
            return default

    # ------------------------------------------------------------------
    # Tools and selection
    def tool_defs(self) -> List[Tuple[str, str]]:
        defs = self._call("tool_defs", default=()) or ()
        return [(str(entry[0]), str(entry[1]) if len(entry) > 1 else "") for entry in defs]

    def select_tool(self, index: int) -> Any:
        return self._call("select_tool", index, default=False)

    def selected_tool(self) -> Optional[int]:
        value = self._call("get_selected_tool")
        return int(value) if value is not None else None

    def selected_tool_or_item(self) -> Optional[Tuple[str, int]]:
        value = self._call("get_selected_tool_or_item")
        if not value:
            return None
        return str(value[0]), int(value[1])

    def has_selection(self) -> bool:
        return bool(self._call("get_selected_item_type"))

    def deselect_inventory(self) -> None:
        self._call("deselect_inventory")

    # ------------------------------------------------------------------
    # Inventories
    def player_inventory(self) -> InventorySnapshot:
        return InventorySnapshot.from_raw(self._call("get_player_inventory"))

    def select_player_inventory(self, index: int, half: bool = False) -> bool:
        return self._call("select_player_inventory", index, half, default=False) is not False

    def open_structure_inventory(self, pos: Position) -> Optional[bool]:
        """Return whether recipes are enabled, or ``None`` when nothing is there."""

        result = self._call("open_structure_inventory", pos[0], pos[1])
        if result is None:
            return None
        return bool(result)

    def structure_inventory(self, pos: Position, category: SlotCategory) -> InventorySnapshot:
        return InventorySnapshot.from_raw(
            self._call("get_structure_inventory", pos[0], pos[1], category.value)
        )

    def select_structure_inventory(self, index: int, category: SlotCategory, half: bool = False) -> bool:
        return self._call("select_structure_inventory", index, category.value, half, default=False) is not False

    def move_selected(self, to_player: bool, category: SlotCategory, move_all: bool) -> bool:
        return bool(self._call("move_selected_inventory_item", to_player, category.value, move_all, default=False))

    def move_all(self, to_player: bool, category: SlotCategory) -> bool:
        return bool(self._call("move_all_inventory_items", to_player, category.value, default=False))

    def structure_progress(self, pos: Position) -> Optional[float]:
        value = self._call("get_structure_progress", pos[0], pos[1])
        return float(value) if value is not None else None

    def burner_energy(self, pos: Position) -> Optional[Tuple[float, float]]:
        """Return ``(value, max)``, or ``None`` for a structure without a burner."""

        value = self._call("get_structure_burner_energy", pos[0], pos[1])
        if not isinstance(value, (list, tuple)) or len(value) < 2:
            return None
        return float(value[0]), float(value[1])

    def structure_status(self, pos: Position) -> StructureStatus:
        return StructureStatus(self.structure_progress(pos), self.burner_energy(pos))

    # ------------------------------------------------------------------
    # Recipes and research
    def structure_recipes(self, pos: Position) -> List[RecipeEntry]:
        raw = self._call("get_structure_recipes", pos[0], pos[1], default=()) or ()
        return [RecipeEntry.from_raw(i, entry) for i, entry in enumerate(raw)]

    def select_recipe(self, pos: Position, index: int) -> bool:
        return bool(self._call("select_recipe", pos[0], pos[1], index, default=False))

    def research_list(self) -> List[ResearchEntry]:
        raw = self._call("get_research_list", default=()) or ()
        return [ResearchEntry.from_raw(i, entry) for i, entry in enumerate(raw)]

    def select_research(self, index: int) -> bool:
        return bool(self._call("select_research", index, default=False))

    # ------------------------------------------------------------------
    # Simulation and drawing
    def simulate(self, delta_time: float) -> List[EngineEvent]:
        return decode_events(self.engine.simulate(delta_time))

    def render(self, surface: pygame.Surface) -> None:
        self.engine.render(surface)

    def render_minimap(self, surface: pygame.Surface) -> None:
        self.engine.render_minimap(surface)

    def render_tool(self, index: int, surface: pygame.Surface) -> None:
        self._call("render_tool", index, surface)

    def tool_inventory(self) -> List[int]:
        return [int(count) for count in (self._call("tool_inventory", default=()) or ())]

    def render_perf(self, surface: pygame.Surface) -> List[str]:
        return [str(label) for label in (self._call("render_perf", surface, default=()) or ())]

    def viewport_scale(self) -> float:
        value = self._call("get_viewport_scale", default=1.0)
        return float(value) if value else 1.0

    def delta_viewport_pos(self, x: float, y: float, scale_relative: bool) -> None:
        self._call("delta_viewport_pos", x, y, scale_relative)

    # ------------------------------------------------------------------
    # Pointer and keys
    def mouse_down(self, pos: Tuple[float, float], button: int) -> List[EngineEvent]:
        return decode_events(self._call("mouse_down", pos, button))

    def mouse_up(self, pos: Tuple[float, float], button: int) -> List[EngineEvent]:
        return decode_events(self._call("mouse_up", pos, button))

    def mouse_move(self, pos: Tuple[float, float]) -> None:
        self._call("mouse_move", pos)

    def mouse_leave(self) -> None:
        self._call("mouse_leave")

    def mouse_wheel(self, delta: int, x: float, y: float) -> None:
        self._call("mouse_wheel", delta, x, y)

    def key_down(self, key: str) -> List[EngineEvent]:
        return decode_events(self._call("on_key_down", key))

    def rotate_tool(self) -> Optional[int]:
        value = self._call("rotate_tool")
        return int(value) if value is not None else None

    # ------------------------------------------------------------------
    # Persistence
    def serialize(self) -> Optional[str]:
        data = self._call("serialize_game")
        return str(data) if data else None

    def deserialize(self, data: str) -> bool:
        return self._call("deserialize_game", data, default=False) is not False


__all__ = [
    "EngineBridge",
    "EngineFactory",
    "EngineProtocol",
    "RECOVERABLE_ERRORS",
    "create_engine",
    "load_engine_factory",
]
