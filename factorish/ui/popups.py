"""Short-lived floating labels that rise and fade."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple

POPUP_LIFETIME = 30
POPUP_RISE = 1.0


@dataclass
class PopupEntry:
    text: str
    position: Tuple[float, float]
    remaining_ticks: int = POPUP_LIFETIME

    @property
    def alpha(self) -> float:
        return max(0.0, min(1.0, self.remaining_ticks / POPUP_LIFETIME))

    def lines(self) -> List[str]:
        return [line for line in self.text.split("\n") if line]


class PopupQueue:
    """Entries in insertion order; only expiry removes them."""

    def __init__(self, lifetime: int = POPUP_LIFETIME, rise: float = POPUP_RISE) -> None:
        self.lifetime = lifetime
        self.rise = rise
        self._entries: List[PopupEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PopupEntry]:
        return iter(tuple(self._entries))

    def push(self, text: str, position: Tuple[float, float]) -> PopupEntry:
        entry = PopupEntry(text=text, position=(float(position[0]), float(position[1])), remaining_ticks=self.lifetime)
        self._entries.append(entry)
        return entry

    def tick(self) -> None:
        entries = self._entries
        write = 0
        for read in range(len(entries)):
            entry = entries[read]
            entry.position = (entry.position[0], entry.position[1] - self.rise)
            entry.remaining_ticks -= 1
            if entry.remaining_ticks > 0:
                entries[write] = entry
                write += 1
        del entries[write:]


__all__ = ["POPUP_LIFETIME", "POPUP_RISE", "PopupEntry", "PopupQueue"]
