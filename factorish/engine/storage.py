"""JSON key/value store holding the serialized game."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

SAVE_KEY = "FactorishJsGameState"

LOGGER = logging.getLogger(__name__)

# Anything that makes the store file unusable; it is then treated as empty.
READ_ERRORS = (OSError, UnicodeDecodeError, json.JSONDecodeError)


class SaveSlot:
    """One entry of a small key/value file, read on start and written on exit."""

    def __init__(self, path: Path, key: str = SAVE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except READ_ERRORS as exc:
            LOGGER.warning("Ignoring unreadable save file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Could not write save file %s: %s", self.path, exc)
            return False
        return True

    def load(self) -> Optional[str]:
        value = self._read_all().get(self.key)
        return value if isinstance(value, str) and value else None

    def save(self, blob: str) -> bool:
        data = self._read_all()
        data[self.key] = blob
        return self._write_all(data)

    def clear(self) -> bool:
        data = self._read_all()
        if data.pop(self.key, None) is None:
            return True
        return self._write_all(data)


__all__ = ["SAVE_KEY", "SaveSlot"]
