"""Floating panels with recency z-order and free-form dragging."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from factorish.engine.logger import ChannelLogger, GameLogger, null_logger

BASE_Z = 10

INVENTORY = "inventory"
RECIPE_SELECT = "recipe_select"
RESEARCH = "research"
TOOLTIP = "tooltip"
MAIN_MENU = "main_menu"


@dataclass
class WindowHandle:
    """A panel created at start-up and only ever shown or hidden afterwards."""

    name: str
    size: Tuple[int, int] = (320, 240)
    position: Tuple[float, float] = (0.0, 0.0)
    visible: bool = False
    z_order: int = BASE_Z
    owner: Optional[str] = None
    title: str = ""

    def contains(self, point: Tuple[float, float]) -> bool:
        x, y = self.position
        width, height = self.size
        return x <= point[0] < x + width and y <= point[1] < y + height

    def title_bar_contains(self, point: Tuple[float, float], height: int = 20) -> bool:
        x, y = self.position
        return x <= point[0] < x + self.size[0] and y <= point[1] < y + height


class PointerCapture:
    """Global pointer listeners installed for the duration of one drag."""

    def __init__(self) -> None:
        self.active = False
        self.installs = 0
        self.releases = 0

    def install(self) -> None:
        if self.active:
            return
        self.active = True
        self.installs += 1

    def release(self) -> None:
        if not self.active:
            return
        self.active = False
        self.releases += 1


@dataclass
class _DragState:
    name: str
    last_pointer: Tuple[float, float]


class WindowStack:
    """Owns every window handle; callers never touch ``z_order`` directly."""

    def __init__(self, logger: Optional[GameLogger] = None) -> None:
        self._handles: Dict[str, WindowHandle] = {}
        self._order: List[str] = []
        self._exclusive: Dict[str, Set[str]] = {}
        self._hidden_listeners: List[Callable[[WindowHandle], None]] = []
        self.capture = PointerCapture()
        self._drag: Optional[_DragState] = None
        self.log: ChannelLogger = (logger or null_logger()).channel("windows")

    # ------------------------------------------------------------------
    def register(self, handle: WindowHandle) -> WindowHandle:
        if handle.name in self._handles:
            raise KeyError(f"Window '{handle.name}' is already registered")
        self._handles[handle.name] = handle
        self._order.append(handle.name)
        self._restack()
        return handle

    def set_exclusive(self, first: str, second: str) -> None:
        """Showing either window hides the other."""

        self._exclusive.setdefault(first, set()).add(second)
        self._exclusive.setdefault(second, set()).add(first)

    def on_hidden(self, callback: Callable[[WindowHandle], None]) -> None:
        self._hidden_listeners.append(callback)

    def get(self, name: str) -> WindowHandle:
        return self._handles[name]

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    @property
    def order(self) -> Tuple[str, ...]:
        return tuple(self._order)

    def handles(self) -> List[WindowHandle]:
        return [self._handles[name] for name in self._order]

    def visible_handles(self) -> List[WindowHandle]:
        """Visible windows bottom to top."""

        return [handle for handle in self.handles() if handle.visible]

    def is_visible(self, name: str) -> bool:
        return name in self._handles and self._handles[name].visible

    def top_z(self) -> int:
        return BASE_Z + len(self._order) - 1

    @property
    def capture_z(self) -> Optional[int]:
        """z-order of the drag capture overlay while a drag is active."""

        return self.top_z() + 1 if self.capture.active else None

    # ------------------------------------------------------------------
    def _restack(self) -> None:
        for index, name in enumerate(self._order):
            self._handles[name].z_order = BASE_Z + index

    def bring_to_front(self, name: str) -> None:
        if name not in self._handles:
            raise KeyError(f"Window '{name}' is not registered")
        if self._order and self._order[-1] == name:
            return
        self._order.remove(name)
        self._order.append(name)
        self._restack()

    def show(self, name: str) -> WindowHandle:
        handle = self.get(name)
        for other in sorted(self._exclusive.get(name, ())):
            if self.is_visible(other):
                self.hide(other)
        if not handle.visible:
            handle.visible = True
            self.log.debug("Show %s", name)
        self.bring_to_front(name)
        return handle

    def hide(self, name: str) -> None:
        handle = self.get(name)
        if self._drag and self._drag.name == name:
            self.end_drag()
        was_visible = handle.visible
        handle.visible = False
        for owned in self._owned_by(name):
            self.hide(owned.name)
        if was_visible:
            self.log.debug("Hide %s", name)
            for callback in list(self._hidden_listeners):
                callback(handle)

    def toggle(self, name: str) -> bool:
        if self.is_visible(name):
            self.hide(name)
            return False
        self.show(name)
        return True

    def set_owner(self, name: str, owner: Optional[str]) -> None:
        self.get(name).owner = owner

    def _owned_by(self, name: str) -> Iterable[WindowHandle]:
        return [handle for handle in self.handles() if handle.owner == name and handle.visible]

    # ------------------------------------------------------------------
    def window_at(self, point: Tuple[float, float]) -> Optional[WindowHandle]:
        for handle in reversed(self.handles()):
            if handle.visible and handle.contains(point):
                return handle
        return None

    def move(self, name: str, position: Tuple[float, float]) -> None:
        self.get(name).position = (float(position[0]), float(position[1]))

    def place_center(self, name: str, surface_size: Tuple[int, int]) -> None:
        handle = self.get(name)
        width, height = handle.size
        handle.position = (
            (surface_size[0] - width) / 2.0,
            (surface_size[1] - height) / 2.0,
        )

    def resize(self, name: str, size: Tuple[int, int]) -> None:
        self.get(name).size = (int(size[0]), int(size[1]))

    # ------------------------------------------------------------------
    @property
    def dragging(self) -> Optional[str]:
        return self._drag.name if self._drag else None

    def start_drag(self, name: str, pointer: Tuple[float, float]) -> None:
        if self._drag is not None:
            self.end_drag()
        self.bring_to_front(name)
        self._drag = _DragState(name=name, last_pointer=(float(pointer[0]), float(pointer[1])))
        self.capture.install()
        self.log.debug("Drag %s from %s", name, pointer)

    def drag_to(self, pointer: Tuple[float, float]) -> None:
        if self._drag is None:
            return
        handle = self._handles[self._drag.name]
        last_x, last_y = self._drag.last_pointer
        dx = pointer[0] - last_x
        dy = pointer[1] - last_y
        handle.position = (handle.position[0] + dx, handle.position[1] + dy)
        self._drag.last_pointer = (float(pointer[0]), float(pointer[1]))

    def end_drag(self) -> None:
        """Pointer up and pointer leaving the surface both end a drag."""

        self._drag = None
        self.capture.release()


__all__ = [
    "BASE_Z",
    "INVENTORY",
    "MAIN_MENU",
    "PointerCapture",
    "RECIPE_SELECT",
    "RESEARCH",
    "TOOLTIP",
    "WindowHandle",
    "WindowStack",
]
