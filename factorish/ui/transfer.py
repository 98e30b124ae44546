"""Click and drag item transfer between player and structure inventories."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from factorish.engine.logger import ChannelLogger, GameLogger, null_logger
from factorish.errors import DragTokenError
from factorish.sim.bridge import EngineBridge
from factorish.sim.events import Position
from factorish.sim.inventory import InventorySnapshot, SlotCategory
from factorish.ui.selection import PlayerItem, SelectionState, StructureItem, Tool

DRAG_PAYLOAD_TYPE = "application/x-factorish-item"


@dataclass(frozen=True)
class DragToken:
    """Self-contained description of a pending item move."""

    item_name: str
    from_player: bool
    slot_category: Optional[SlotCategory] = None

    def encode(self) -> str:
        return json.dumps(
            {
                "itemName": self.item_name,
                "fromPlayer": self.from_player,
                "slotCategory": self.slot_category.value if self.slot_category else None,
            }
        )

    @classmethod
    def decode(cls, payload: str) -> "DragToken":
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as exc:
            raise DragTokenError(f"Drag payload is not JSON: {payload!r}") from exc
        if not isinstance(data, dict):
            raise DragTokenError(f"Drag payload is not an object: {payload!r}")
        name = data.get("itemName")
        from_player = data.get("fromPlayer")
        if not isinstance(name, str) or not name or not isinstance(from_player, bool):
            raise DragTokenError(f"Drag payload is missing fields: {payload!r}")
        category_value = data.get("slotCategory")
        try:
            category = SlotCategory.parse(category_value) if category_value is not None else None
        except ValueError as exc:
            raise DragTokenError(str(exc)) from exc
        if not from_player and category is None:
            raise DragTokenError("Structure drag payload has no slot category")
        return cls(item_name=name, from_player=from_player, slot_category=category)


class DragChannel:
    """Typed payload store carried by one drag gesture."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    @property
    def types(self) -> List[str]:
        return list(self._data)

    def set_data(self, payload_type: str, payload: str) -> None:
        self._data[payload_type] = payload

    def get_data(self, payload_type: str) -> str:
        return self._data.get(payload_type, "")

    def clear(self) -> None:
        self._data.clear()


@dataclass(frozen=True)
class InventoryTarget:
    """One inventory panel region: the player's, or a structure sub-inventory."""

    structure_pos: Optional[Position] = None
    category: Optional[SlotCategory] = None

    @property
    def is_player(self) -> bool:
        return self.structure_pos is None

    @classmethod
    def player(cls) -> "InventoryTarget":
        return cls()

    @classmethod
    def structure(cls, pos: Position, category: SlotCategory) -> "InventoryTarget":
        return cls(structure_pos=pos, category=category)


PLAYER = InventoryTarget.player()


class TransferController:
    """Routes clicks, drags and drops on inventory slots to engine transfers.

    Both paths end in :meth:`_request_transfer`; after a successful transfer
    the touched inventories are marked dirty and re-read from the engine.
    """

    def __init__(
        self,
        bridge: EngineBridge,
        selection: SelectionState,
        logger: Optional[GameLogger] = None,
    ) -> None:
        self.bridge = bridge
        self.selection = selection
        self.log: ChannelLogger = (logger or null_logger()).channel("transfer")
        self.dirty: Set[InventoryTarget] = set()
        self.drag: Optional[DragChannel] = None
        self.drag_source: Optional[InventoryTarget] = None
        self.transfer_count = 0

    # ------------------------------------------------------------------
    def source_target(self) -> Optional[InventoryTarget]:
        owner = self.selection.owner
        if isinstance(owner, PlayerItem):
            return PLAYER
        if isinstance(owner, StructureItem):
            return InventoryTarget.structure(owner.structure_pos, owner.slot_category)
        return None

    def _select(self, target: InventoryTarget, index: int, half: bool) -> bool:
        if isinstance(self.selection.owner, Tool):
            self.selection.deselect()
        if target.is_player:
            return self.selection.select_player_item(index, half)
        assert target.structure_pos is not None and target.category is not None
        return self.selection.select_structure_item(target.structure_pos, target.category, index, half)

    def _same_inventory(self, source: InventoryTarget, destination: InventoryTarget) -> bool:
        if source.is_player or destination.is_player:
            return source.is_player == destination.is_player
        # The engine only moves between a structure and the player.
        return True

    def _request_transfer(self, source: InventoryTarget, destination: InventoryTarget, move_all: bool) -> bool:
        if destination.is_player:
            to_player = True
            category = source.category
        else:
            to_player = False
            category = destination.category
        assert category is not None
        item = self.selection.held_item()
        ok = self.bridge.move_selected(to_player, category, move_all)
        self.transfer_count += 1
        if ok:
            self.log.info(
                "Moved %s%s %s player (%s)",
                "all " if move_all else "",
                item,
                "to" if to_player else "from",
                category.value,
            )
            self.dirty.update((source, destination))
            self.selection.deselect()
        else:
            self.log.info("Engine rejected moving %s %s player", item, "to" if to_player else "from")
            self.selection.sync_from_engine()
        return ok

    # ------------------------------------------------------------------
    def click_slot(self, target: InventoryTarget, index: int, ctrl: bool = False, half: bool = False) -> bool:
        """Handle a click on slot ``index`` of ``target``.

        Returns ``True`` when a selection or transfer happened.
        """

        source = self.source_target()
        if source is None:
            return self._select(target, index, half)
        if self._same_inventory(source, target):
            line = self.snapshot(target).line(index)
            held = self.selection.held_item()
            self.selection.deselect()
            if line is None or (source == target and line.item_name == held):
                return True
            return self._select(target, index, half)
        return self._request_transfer(source, target, ctrl)

    def click_empty(self, target: InventoryTarget, ctrl: bool = False) -> bool:
        """Click past the populated slots of an inventory panel."""

        source = self.source_target()
        if source is not None and not self._same_inventory(source, target):
            return self._request_transfer(source, target, ctrl)
        if not ctrl or source is not None:
            return False
        if target.is_player:
            ok = self.bridge.move_all(False, SlotCategory.INPUT)
        else:
            assert target.category is not None
            ok = self.bridge.move_all(True, target.category)
        self.log.info("Move all %s player: %s", "to" if not target.is_player else "from", ok)
        if ok:
            self.dirty.add(target)
            self.dirty.add(PLAYER)
        return ok

    # ------------------------------------------------------------------
    def start_drag(self, target: InventoryTarget, index: int) -> Optional[DragChannel]:
        if self.selection.is_empty or isinstance(self.selection.owner, Tool):
            if not self._select(target, index, False):
                return None
        source = self.source_target()
        item = self.selection.held_item()
        if source is None or item is None:
            return None
        token = DragToken(
            item_name=item,
            from_player=source.is_player,
            slot_category=None if source.is_player else source.category,
        )
        channel = DragChannel()
        channel.set_data(DRAG_PAYLOAD_TYPE, token.encode())
        self.drag = channel
        self.drag_source = source
        self.log.debug("Drag started with %s", token)
        return channel

    @staticmethod
    def accepts_drop(channel: Optional[DragChannel]) -> bool:
        return channel is not None and DRAG_PAYLOAD_TYPE in channel.types

    def drop(self, target: InventoryTarget, channel: Optional[DragChannel] = None, ctrl: bool = False) -> bool:
        channel = channel or self.drag
        self.drag = None
        source_hint = self.drag_source
        self.drag_source = None
        if not self.accepts_drop(channel):
            return False
        assert channel is not None
        try:
            token = DragToken.decode(channel.get_data(DRAG_PAYLOAD_TYPE))
        except DragTokenError as exc:
            self.log.debug("Ignoring drop: %s", exc)
            return False
        finally:
            channel.clear()
        if token.from_player:
            source = PLAYER
        else:
            owner = self.selection.owner
            if isinstance(owner, StructureItem):
                pos = owner.structure_pos
            elif source_hint is not None:
                pos = source_hint.structure_pos
            else:
                pos = None
            if pos is None:
                return False
            assert token.slot_category is not None
            source = InventoryTarget.structure(pos, token.slot_category)
        if self.selection.held_item() != token.item_name:
            self.log.debug("Ignoring drop of %s; holding %s", token.item_name, self.selection.held_item())
            return False
        if self._same_inventory(source, target):
            return False
        return self._request_transfer(source, target, ctrl)

    def cancel_drag(self) -> None:
        if self.drag is not None:
            self.drag.clear()
        self.drag = None
        self.drag_source = None

    # ------------------------------------------------------------------
    def snapshot(self, target: InventoryTarget) -> InventorySnapshot:
        if target.is_player:
            return self.bridge.player_inventory()
        assert target.structure_pos is not None and target.category is not None
        return self.bridge.structure_inventory(target.structure_pos, target.category)

    def take_dirty(self) -> Set[InventoryTarget]:
        dirty = self.dirty
        self.dirty = set()
        return dirty


__all__ = [
    "DRAG_PAYLOAD_TYPE",
    "DragChannel",
    "DragToken",
    "InventoryTarget",
    "PLAYER",
    "TransferController",
]
