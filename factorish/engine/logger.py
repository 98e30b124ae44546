"""Channel-filtered logging for the shell."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

ROOT_LOGGER = "factorish"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_CHANNELS = {
    "selection": True,
    "transfer": True,
    "windows": True,
    "loop": False,
    "engine": True,
    "assets": True,
}


def _parse_level(value: Any) -> int:
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else logging.INFO


@dataclass
class LoggerConfig:
    """Level plus per-channel toggles, read from settings.json."""

    level: int = logging.INFO
    channels: Dict[str, bool] = field(default_factory=DEFAULT_CHANNELS.copy)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LoggerConfig":
        overrides = data.get("logChannels") or {}
        channels = DEFAULT_CHANNELS.copy()
        if isinstance(overrides, Mapping):
            channels.update((str(name), bool(flag)) for name, flag in overrides.items())
        return cls(_parse_level(data.get("logLevel", "INFO")), channels)

    @classmethod
    def from_settings(cls, settings_path: Path) -> "LoggerConfig":
        try:
            data = json.loads(settings_path.read_text())
        except (OSError, json.JSONDecodeError):
            return cls()
        return cls.from_mapping(data) if isinstance(data, dict) else cls()


class ChannelLogger:
    """A named logger whose records below ERROR can be switched off."""

    def __init__(self, name: str, logger: logging.Logger, enabled: bool) -> None:
        self.name = name
        self.enabled = enabled
        self._logger = logger

    def _emit(self, level: int, msg: str, args, kwargs) -> None:
        if self.enabled or level >= logging.ERROR:
            self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.ERROR, msg, args, kwargs)


class GameLogger:
    """Hands out one :class:`ChannelLogger` per subsystem."""

    def __init__(self, config: LoggerConfig) -> None:
        logging.basicConfig(level=config.level, format=LOG_FORMAT, stream=sys.stdout)
        self._defaults = dict(config.channels or {})
        self._channels: Dict[str, ChannelLogger] = {}
        for name in self._defaults:
            self.channel(name)

    def channel(self, name: str) -> ChannelLogger:
        found = self._channels.get(name)
        if found is None:
            # Channels missing from the config stay quiet until enabled.
            found = ChannelLogger(
                name,
                logging.getLogger(f"{ROOT_LOGGER}.{name}"),
                self._defaults.get(name, False),
            )
            self._channels[name] = found
        return found

    def set_enabled(self, name: str, enabled: bool) -> None:
        self.channel(name).enabled = enabled

    def channels(self) -> Iterable[str]:
        return self._channels.keys()


def init_logger(settings_path: Optional[Path] = None) -> GameLogger:
    return GameLogger(LoggerConfig.from_settings(settings_path or Path("settings.json")))


def null_logger() -> GameLogger:
    """Logger with every channel muted, used when no logger is injected."""

    return GameLogger(LoggerConfig(level=logging.WARNING, channels={}))


__all__ = ["ChannelLogger", "DEFAULT_CHANNELS", "GameLogger", "LoggerConfig", "init_logger", "null_logger"]
