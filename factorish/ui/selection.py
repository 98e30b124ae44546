"""What the player currently holds: a tool, an item, or nothing."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from factorish.engine.deferred import DeferredQueue
from factorish.engine.logger import ChannelLogger, GameLogger, null_logger
from factorish.sim.bridge import EngineBridge
from factorish.sim.events import Position, ShowInventory, decode_events
from factorish.sim.inventory import SlotCategory


@dataclass(frozen=True)
class NoSelection:
    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Tool:
    index: int


@dataclass(frozen=True)
class PlayerItem:
    name: str


@dataclass(frozen=True)
class StructureItem:
    structure_pos: Position
    slot_category: SlotCategory
    name: str


NO_SELECTION = NoSelection()

SelectionOwner = Union[NoSelection, Tool, PlayerItem, StructureItem]


class ToolResult(Enum):
    SELECTED = "selected"
    DESELECTED = "deselected"
    OPEN_INVENTORY = "open_inventory"
    BELT_CHANGED = "belt_changed"
    REJECTED = "rejected"


class SelectionState:
    """Single owner of the current selection.

    Every transition goes through :meth:`_set_owner`, which replaces the
    previous owner and queues a cursor re-sync on the deferred queue.
    """

    def __init__(
        self,
        bridge: EngineBridge,
        deferred: DeferredQueue,
        logger: Optional[GameLogger] = None,
    ) -> None:
        self.bridge = bridge
        self.deferred = deferred
        self.log: ChannelLogger = (logger or null_logger()).channel("selection")
        self._owner: SelectionOwner = NO_SELECTION
        self.held_item_visible = False
        self.held_item_name: Optional[str] = None
        self.belt_cursor_index: Optional[int] = None
        self._listeners: List[Callable[[SelectionOwner], None]] = []

    # ------------------------------------------------------------------
    @property
    def owner(self) -> SelectionOwner:
        return self._owner

    @property
    def is_empty(self) -> bool:
        return isinstance(self._owner, NoSelection)

    def held_item(self) -> Optional[str]:
        if isinstance(self._owner, (PlayerItem, StructureItem)):
            return self._owner.name
        return None

    def add_listener(self, callback: Callable[[SelectionOwner], None]) -> None:
        """Called (deferred) after every cursor re-sync."""

        self._listeners.append(callback)

    # ------------------------------------------------------------------
    def _set_owner(self, owner: SelectionOwner) -> None:
        previous = self._owner
        self._owner = owner
        if previous != owner:
            self.log.debug("Selection %s -> %s", previous, owner)
        self.deferred.call_soon(self._sync_cursors)

    def _sync_cursors(self) -> None:
        owner = self._owner
        if isinstance(owner, (PlayerItem, StructureItem)):
            self.held_item_visible = True
            self.held_item_name = owner.name
        else:
            self.held_item_visible = False
            self.held_item_name = None
        self.belt_cursor_index = owner.index if isinstance(owner, Tool) else None
        for callback in list(self._listeners):
            callback(owner)

    # ------------------------------------------------------------------
    def select_tool(self, index: int) -> ToolResult:
        holding_player_item = isinstance(self._owner, PlayerItem)
        result = self.bridge.select_tool(index)
        if any(isinstance(event, ShowInventory) for event in decode_events(result)):
            self._set_owner(NO_SELECTION)
            self.log.info("Tool slot %d is empty; opening inventory", index)
            return ToolResult.OPEN_INVENTORY
        if holding_player_item:
            # The engine moved the held item onto the belt slot (or refused it).
            if result:
                self._set_owner(NO_SELECTION)
                self.log.info("Placed held item on tool slot %d", index)
                return ToolResult.BELT_CHANGED
            return ToolResult.REJECTED
        if result:
            self._set_owner(Tool(index))
            return ToolResult.SELECTED
        self._set_owner(NO_SELECTION)
        return ToolResult.DESELECTED

    def select_player_item(self, index: int, half: bool = False) -> bool:
        if not self.is_empty:
            return False
        line = self.bridge.player_inventory().line(index)
        if line is None:
            return False
        if not self.bridge.select_player_inventory(index, half):
            return False
        self._set_owner(PlayerItem(line.item_name))
        self.log.info("Holding %s from player inventory", line.item_name)
        return True

    def select_structure_item(
        self,
        pos: Position,
        category: SlotCategory,
        index: int,
        half: bool = False,
    ) -> bool:
        if not self.is_empty:
            return False
        line = self.bridge.structure_inventory(pos, category).line(index)
        if line is None:
            return False
        if not self.bridge.select_structure_inventory(index, category, half):
            return False
        self._set_owner(StructureItem(pos, category, line.item_name))
        self.log.info("Holding %s from %s %s", line.item_name, pos, category.value)
        return True

    def adopt_player_item(self, name: str) -> None:
        """Record an item the engine selected on its own (pipette key)."""

        self._set_owner(PlayerItem(name))

    def deselect(self) -> None:
        if self.is_empty:
            # Still re-sync so a stale cursor can never outlive the selection.
            self.deferred.call_soon(self._sync_cursors)
            return
        self.bridge.deselect_inventory()
        self._set_owner(NO_SELECTION)

    def sync_from_engine(self) -> None:
        """Drop the local selection if the engine no longer has one."""

        if not self.is_empty and not self.bridge.has_selection():
            self.log.info("Engine dropped selection %s", self._owner)
            self._set_owner(NO_SELECTION)

    def source_is_structure(self, pos: Optional[Position]) -> bool:
        owner = self._owner
        return isinstance(owner, StructureItem) and pos is not None and owner.structure_pos == pos


__all__ = [
    "NO_SELECTION",
    "NoSelection",
    "PlayerItem",
    "SelectionOwner",
    "SelectionState",
    "StructureItem",
    "Tool",
    "ToolResult",
]
