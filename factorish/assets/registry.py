"""Item and structure name to image lookup."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union


@dataclass(frozen=True)
class ImageDescriptor:
    """Image url plus the frame counts of a multi-frame sprite sheet."""

    url: str = ""
    width_factor: int = 1
    height_factor: int = 1

    @property
    def found(self) -> bool:
        return bool(self.url)

    def frame_size(self, sheet_size: Tuple[int, int]) -> Tuple[int, int]:
        """Size of a single frame given the full sheet size."""

        width, height = sheet_size
        return width // max(1, self.width_factor), height // max(1, self.height_factor)


# Images loaded up front and handed to the engine, keyed by the engine's names.
LOAD_IMAGES: Tuple[Tuple[str, str], ...] = (
    ("dirt", "dirt.png"),
    ("backTiles", "back32.png"),
    ("weeds", "weeds.png"),
    ("iron", "iron.png"),
    ("coal", "coal.png"),
    ("copper", "copper.png"),
    ("stone", "stone.png"),
    ("transport", "transport.png"),
    ("undergroundBelt", "underbelt.png"),
    ("chest", "chest.png"),
    ("mine", "mine.png"),
    ("furnace", "furnace.png"),
    ("assembler", "assembler.png"),
    ("boiler", "boiler.png"),
    ("steamEngine", "steam-engine.png"),
    ("electPole", "elect-pole.png"),
    ("splitter", "splitter.png"),
    ("waterWell", "waterwell.png"),
    ("offshorePump", "offshore-pump.png"),
    ("pipe", "pipe.png"),
    ("inserter", "inserter-base.png"),
    ("direction", "direction.png"),
    ("ore", "ore.png"),
    ("coalOre", "coal-ore.png"),
    ("ironPlate", "metal.png"),
    ("copperOre", "copper-ore.png"),
    ("stoneOre", "stone-ore.png"),
    ("copperPlate", "copper-plate.png"),
    ("gear", "gear.png"),
    ("copperWire", "copper-wire.png"),
    ("circuit", "circuit.png"),
    ("undergroundBeltItem", "underground-belt-item.png"),
    ("time", "time.png"),
    ("smoke", "smoke.png"),
    ("fuelAlarm", "fuel-alarm.png"),
    ("electricityAlarm", "electricity-alarm.png"),
)

_ImageEntry = Union[str, Tuple[str, int], Tuple[str, int, int]]

ITEM_IMAGES: Dict[str, _ImageEntry] = {
    "time": "time.png",
    "Iron Ore": "ore.png",
    "Iron Plate": "metal.png",
    "Steel Plate": "steel-plate.png",
    "Copper Ore": "copper-ore.png",
    "Copper Plate": "copper-plate.png",
    "Coal Ore": "coal-ore.png",
    "Stone Ore": "stone-ore.png",
    "Gear": "gear.png",
    "Copper Wire": "copper-wire.png",
    "Circuit": "circuit.png",
    "Transport Belt": "transport.png",
    "Underground Belt": "underground-belt-item.png",
    "Splitter": "splitter.png",
    "Inserter": ("inserter-base.png", 2),
    "Chest": "chest.png",
    "Ore Mine": ("mine.png", 3),
    "Furnace": ("furnace.png", 3),
    "Assembler": ("assembler.png", 4),
    "Water Well": "waterwell.png",
    "Offshore Pump": "offshore-pump.png",
    "Boiler": ("boiler.png", 3),
    "Pipe": "pipe-item.png",
    "Steam Engine": ("steam-engine.png", 3),
    "Electric Pole": "elect-pole.png",
}


def get_image_file(name: str) -> ImageDescriptor:
    """Resolve a logical item name; unknown names give an empty descriptor."""

    entry = ITEM_IMAGES.get(name)
    if entry is None:
        return ImageDescriptor()
    if isinstance(entry, str):
        return ImageDescriptor(url=entry)
    url, width_factor, *rest = entry
    height_factor = rest[0] if rest else 1
    return ImageDescriptor(url=url, width_factor=width_factor, height_factor=height_factor)


__all__ = ["ITEM_IMAGES", "ImageDescriptor", "LOAD_IMAGES", "get_image_file"]
