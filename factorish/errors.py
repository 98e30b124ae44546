"""Exception types shared across the shell."""
from __future__ import annotations


class InitializationError(RuntimeError):
    """The application cannot start; shown once as a blocking alert."""


class AssetLoadError(InitializationError):
    """An image could not be fetched or decoded before engine construction."""


class EngineLoadError(InitializationError):
    """The engine factory could not be imported or constructed."""


class EngineError(RuntimeError):
    """Raised by an engine for a rejected call."""


class DragTokenError(ValueError):
    """A drag payload could not be decoded into a token."""


__all__ = [
    "AssetLoadError",
    "DragTokenError",
    "EngineError",
    "EngineLoadError",
    "InitializationError",
]
