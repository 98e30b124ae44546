"""Runtime settings loaded from settings.json."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

DEFAULT_SETTINGS: Dict[str, Any] = {
    "resolution": [1280, 800],
    "renderer": "software",
    "tickInterval": 0.05,
    "stepMode": "fixed",
    "maxStep": 0.25,
    "engine": None,
    "assetRoot": "img",
    "storagePath": "storage.json",
    "perfOverlay": False,
}


@dataclass
class Settings:
    """Typed view over the settings file with defaults filled in."""

    resolution: Tuple[int, int] = (1280, 800)
    renderer: str = "software"
    tick_interval: float = 0.05
    step_mode: str = "fixed"
    max_step: float = 0.25
    engine: Optional[str] = None
    asset_root: Path = Path("img")
    storage_path: Path = Path("storage.json")
    perf_overlay: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        merged = DEFAULT_SETTINGS.copy()
        merged.update(data)
        resolution = merged.get("resolution") or DEFAULT_SETTINGS["resolution"]
        step_mode = str(merged.get("stepMode", "fixed")).lower()
        if step_mode not in ("fixed", "variable"):
            step_mode = "fixed"
        interval = float(merged.get("tickInterval", 0.05))
        if interval <= 0.0:
            interval = float(DEFAULT_SETTINGS["tickInterval"])
        return cls(
            resolution=(int(resolution[0]), int(resolution[1])),
            renderer=str(merged.get("renderer", "software")).lower(),
            tick_interval=interval,
            step_mode=step_mode,
            max_step=float(merged.get("maxStep", 0.25)),
            engine=merged.get("engine"),
            asset_root=Path(merged.get("assetRoot", "img")),
            storage_path=Path(merged.get("storagePath", "storage.json")),
            perf_overlay=bool(merged.get("perfOverlay", False)),
            raw=merged,
        )


def load_settings(path: Path) -> Settings:
    if not path.exists():
        return Settings.from_dict({})
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError:
        return Settings.from_dict({})
    if not isinstance(data, dict):
        return Settings.from_dict({})
    return Settings.from_dict(data)


__all__ = ["DEFAULT_SETTINGS", "Settings", "load_settings"]
