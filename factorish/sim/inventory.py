"""Inventory snapshots mirrored from the engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


class SlotCategory(Enum):
    """Sub-inventory of a structure a slot belongs to."""

    INPUT = "Input"
    OUTPUT = "Output"
    STORAGE = "Storage"
    BURNER = "Burner"

    @classmethod
    def parse(cls, value: Any) -> "SlotCategory":
        if isinstance(value, cls):
            return value
        text = str(value)
        for member in cls:
            if member.value == text or member.name == text.upper():
                return member
        raise ValueError(f"Unknown slot category: {value!r}")


@dataclass(frozen=True)
class InventoryLine:
    item_name: str
    count: int


@dataclass(frozen=True)
class InventorySnapshot:
    """Ordered inventory lines plus the item the engine has selected, if any."""

    lines: Tuple[InventoryLine, ...] = ()
    selected: Optional[str] = None

    def __len__(self) -> int:
        return len(self.lines)

    def line(self, index: int) -> Optional[InventoryLine]:
        if 0 <= index < len(self.lines):
            return self.lines[index]
        return None

    def total(self, item_name: str) -> int:
        return sum(line.count for line in self.lines if line.item_name == item_name)

    @classmethod
    def from_raw(cls, raw: Any) -> "InventorySnapshot":
        """Accept the engine's ``[[[name, count], ...], selected]`` shape.

        Missing structures come back as an empty array, which maps to an
        empty snapshot.
        """

        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls()
        try:
            entries, selected = raw[0], raw[1] if len(raw) > 1 else None
        except (TypeError, IndexError, KeyError):
            return cls()
        lines: List[InventoryLine] = []
        for entry in entries or ():
            name, count = entry[0], entry[1]
            lines.append(InventoryLine(str(name), int(count)))
        return cls(lines=tuple(lines), selected=str(selected) if selected else None)


@dataclass
class RecipeEntry:
    index: int
    inputs: dict = field(default_factory=dict)
    outputs: dict = field(default_factory=dict)
    recipe_time: float = 0.0
    power_cost: float = 0.0

    @classmethod
    def from_raw(cls, index: int, raw: Any) -> "RecipeEntry":
        if not isinstance(raw, dict):
            return cls(index=index)
        return cls(
            index=index,
            inputs=dict(raw.get("input", {})),
            outputs=dict(raw.get("output", {})),
            recipe_time=float(raw.get("recipe_time", 0.0)),
            power_cost=float(raw.get("power_cost", 0.0)),
        )


@dataclass
class ResearchEntry:
    index: int
    tag: str
    unlocked: bool = False
    steps: int = 0
    research_time: float = 0.0
    unlocks: Tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, index: int, raw: Any) -> "ResearchEntry":
        if not isinstance(raw, dict):
            return cls(index=index, tag=str(raw))
        return cls(
            index=index,
            tag=str(raw.get("tag", f"research{index}")),
            unlocked=bool(raw.get("unlocked", False)),
            steps=int(raw.get("steps", 0)),
            research_time=float(raw.get("research_time", 0.0)),
            unlocks=tuple(str(u) for u in raw.get("unlocks", ())),
        )


@dataclass(frozen=True)
class StructureStatus:
    """Crafting progress and burner fuel of the structure whose panel is open."""

    progress: Optional[float] = None
    energy: Optional[Tuple[float, float]] = None

    @property
    def progress_ratio(self) -> Optional[float]:
        if self.progress is None:
            return None
        return max(0.0, min(1.0, self.progress))

    @property
    def energy_ratio(self) -> Optional[float]:
        if self.energy is None:
            return None
        value, maximum = self.energy
        if maximum <= 0:
            return 0.0
        return max(0.0, min(1.0, value / maximum))


__all__ = [
    "InventoryLine",
    "InventorySnapshot",
    "RecipeEntry",
    "ResearchEntry",
    "SlotCategory",
    "StructureStatus",
]
