"""Image loading that must finish before the engine is constructed."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import pygame

from factorish.assets.registry import ITEM_IMAGES, LOAD_IMAGES, ImageDescriptor, get_image_file
from factorish.engine.logger import GameLogger, null_logger
from factorish.errors import AssetLoadError


class ImageBundle:
    """Decoded surfaces keyed by engine image name, plus item icon lookup."""

    def __init__(self, root: Path, logger: Optional[GameLogger] = None) -> None:
        self.root = root
        self.images: Dict[str, pygame.Surface] = {}
        self._by_file: Dict[str, pygame.Surface] = {}
        self._icons: Dict[str, pygame.Surface] = {}
        self.log = (logger or null_logger()).channel("assets")

    def _load_file(self, file_name: str) -> pygame.Surface:
        cached = self._by_file.get(file_name)
        if cached is not None:
            return cached
        path = self.root / file_name
        try:
            surface = pygame.image.load(str(path))
        except (pygame.error, FileNotFoundError, OSError) as exc:
            raise AssetLoadError(f"Failed to load image '{path}': {exc}") from exc
        self._by_file[file_name] = surface
        return surface

    def load(self, entries: Iterable[Tuple[str, str]] = LOAD_IMAGES) -> Dict[str, pygame.Surface]:
        """Load every engine image; any failure aborts start-up."""

        for name, file_name in entries:
            self.images[name] = self._load_file(file_name)
        for item_name in ITEM_IMAGES:
            descriptor = get_image_file(item_name)
            self._load_file(descriptor.url)
        self.log.info("Loaded %d images from %s", len(self._by_file), self.root)
        return self.images

    def icon(self, item_name: str) -> Optional[pygame.Surface]:
        """First frame of an item's sprite sheet, or ``None`` if unknown."""

        cached = self._icons.get(item_name)
        if cached is not None:
            return cached
        descriptor: ImageDescriptor = get_image_file(item_name)
        if not descriptor.found:
            return None
        sheet = self._by_file.get(descriptor.url)
        if sheet is None:
            return None
        frame_w, frame_h = descriptor.frame_size(sheet.get_size())
        icon = sheet.subsurface(pygame.Rect(0, 0, frame_w, frame_h))
        self._icons[item_name] = icon
        return icon


__all__ = ["ImageBundle"]
