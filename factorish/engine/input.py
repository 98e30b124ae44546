"""Input mapping and rebind support."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pygame

DEFAULT_BINDINGS = {
    "toggle_pause": ["K_P"],
    "toggle_inventory": ["K_E"],
    "deselect": ["K_Q"],
    "rotate": ["K_R"],
    "toggle_perf": ["K_F3"],
    "toggle_menu": ["K_ESCAPE"],
    "toggle_research": ["K_T"],
}

# Digit keys select tool belt slots; "1" is slot 0 and "0" is slot 9.
TOOL_KEYS = {f"K_{digit}": (digit + 9) % 10 for digit in range(10)}

MOUSE_BUTTONS = {
    "BUTTON_LEFT": 0,
    "BUTTON_MIDDLE": 1,
    "BUTTON_RIGHT": 2,
}


def key_token(key: int) -> str:
    return f"K_{pygame.key.name(key).upper()}"


@dataclass
class InputBindings:
    """Runtime structure representing current bindings."""

    actions: Dict[str, list[str]] = field(default_factory=lambda: DEFAULT_BINDINGS.copy())

    @classmethod
    def load(cls, path: Path) -> "InputBindings":
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        actions = DEFAULT_BINDINGS.copy()
        actions.update({k: [str(key).upper() for key in v] for k, v in data.get("bindings", {}).items()})
        return cls(actions=actions)

    def save(self, path: Path) -> None:
        path.write_text(json.dumps({"bindings": self.actions}, indent=2))


class InputMapper:
    """Translates key events into shell actions."""

    def __init__(self, bindings: Optional[InputBindings] = None) -> None:
        self.bindings = bindings or InputBindings()
        self.ctrl_held = False
        self.shift_held = False

    def action_for_key(self, token: str) -> Optional[str]:
        for action, keys in self.bindings.actions.items():
            if token in keys:
                return action
        return None

    def tool_index_for_key(self, token: str) -> Optional[int]:
        return TOOL_KEYS.get(token)

    def handle_event(self, event: pygame.event.Event) -> Optional[str]:
        """Track modifiers and return the bound action for a key press."""

        if event.type in (pygame.KEYDOWN, pygame.KEYUP):
            mods = getattr(event, "mod", 0)
            self.ctrl_held = bool(mods & pygame.KMOD_CTRL)
            self.shift_held = bool(mods & pygame.KMOD_SHIFT)
        if event.type != pygame.KEYDOWN:
            return None
        return self.action_for_key(key_token(event.key))

    @staticmethod
    def button_name(button: int) -> Optional[str]:
        for name, idx in MOUSE_BUTTONS.items():
            if idx == button - 1:
                return name
        return None


__all__ = ["InputMapper", "InputBindings", "DEFAULT_BINDINGS", "TOOL_KEYS", "key_token"]
