"""Events emitted by the simulation engine and their decoding."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple, Union

LOGGER = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass(frozen=True)
class UpdateStructureInventory:
    pos: Position


@dataclass(frozen=True)
class UpdatePlayerInventory:
    pass


@dataclass(frozen=True)
class ShowInventory:
    pass


@dataclass(frozen=True)
class ShowInventoryAt:
    pos: Position
    recipe_enable: bool = False


@dataclass(frozen=True)
class UpdateResearch:
    pass


@dataclass(frozen=True)
class PopupText:
    text: str
    x: float
    y: float


EngineEvent = Union[
    UpdateStructureInventory,
    UpdatePlayerInventory,
    ShowInventory,
    ShowInventoryAt,
    UpdateResearch,
    PopupText,
]

_UNIT_EVENTS = {
    "UpdatePlayerInventory": UpdatePlayerInventory,
    "ShowInventory": ShowInventory,
    "UpdateResearch": UpdateResearch,
}


def _pos(value: Any) -> Position:
    if isinstance(value, dict):
        return int(value["x"]), int(value["y"])
    return int(value[0]), int(value[1])


def decode_event(raw: Any) -> Optional[EngineEvent]:
    """Decode one event from the engine's tagged shape.

    Unit variants arrive as a bare tag string, data variants as a single-key
    mapping ``{tag: payload}``. Already decoded events pass through.
    """

    if isinstance(
        raw,
        (UpdateStructureInventory, UpdatePlayerInventory, ShowInventory, ShowInventoryAt, UpdateResearch, PopupText),
    ):
        return raw
    if isinstance(raw, str):
        factory = _UNIT_EVENTS.get(raw)
        return factory() if factory else None
    if not isinstance(raw, dict) or len(raw) != 1:
        return None
    tag, payload = next(iter(raw.items()))
    try:
        if tag in _UNIT_EVENTS:
            return _UNIT_EVENTS[tag]()
        if tag == "UpdateStructureInventory":
            return UpdateStructureInventory(_pos(payload))
        if tag == "ShowInventoryAt":
            return ShowInventoryAt(_pos(payload["pos"]), bool(payload.get("recipe_enable", False)))
        if tag == "PopupText":
            if isinstance(payload, dict):
                return PopupText(str(payload["text"]), float(payload["x"]), float(payload["y"]))
            return PopupText(str(payload[0]), float(payload[1]), float(payload[2]))
    except (KeyError, IndexError, TypeError, ValueError):
        return None
    return None


def decode_events(raw_events: Optional[Iterable[Any]]) -> List[EngineEvent]:
    """Decode an ordered event list, dropping entries that are not events.

    The engine may also answer with a plain boolean (``True`` meaning
    "re-render"); that carries no events.
    """

    if not raw_events or isinstance(raw_events, (bool, str, dict)):
        if isinstance(raw_events, (str, dict)):
            raw_events = [raw_events]
        else:
            return []
    events: List[EngineEvent] = []
    for raw in raw_events:
        event = decode_event(raw)
        if event is None:
            LOGGER.debug("Ignoring unknown engine event %r", raw)
            continue
        events.append(event)
    return events


__all__ = [
    "EngineEvent",
    "PopupText",
    "Position",
    "ShowInventory",
    "ShowInventoryAt",
    "UpdatePlayerInventory",
    "UpdateResearch",
    "UpdateStructureInventory",
    "decode_event",
    "decode_events",
]
