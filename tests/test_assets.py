import pygame
import pytest

from factorish.assets.loader import ImageBundle
from factorish.assets.registry import ITEM_IMAGES, LOAD_IMAGES, get_image_file
from factorish.errors import AssetLoadError, InitializationError


def test_single_image_entry():
    descriptor = get_image_file("Iron Plate")
    assert descriptor.url == "metal.png"
    assert (descriptor.width_factor, descriptor.height_factor) == (1, 1)
    assert descriptor.found


def test_sprite_sheet_entry_carries_frame_count():
    descriptor = get_image_file("Assembler")
    assert descriptor.url == "assembler.png"
    assert descriptor.width_factor == 4
    assert descriptor.frame_size((128, 32)) == (32, 32)


def test_unknown_name_gives_empty_descriptor():
    descriptor = get_image_file("Nuclear Reactor")
    assert not descriptor.found
    assert descriptor.url == ""


def _write_images(root, files, size=(64, 32)):
    for file_name in files:
        surface = pygame.Surface(size)
        surface.fill((120, 80, 40))
        pygame.image.save(surface, str(root / file_name))


def _all_files():
    files = {file_name for _, file_name in LOAD_IMAGES}
    files.update(get_image_file(name).url for name in ITEM_IMAGES)
    return files


def test_bundle_loads_every_engine_image(tmp_path):
    _write_images(tmp_path, _all_files())
    bundle = ImageBundle(tmp_path)

    images = bundle.load()

    assert set(images) == {name for name, _ in LOAD_IMAGES}
    assert images["furnace"].get_size() == (64, 32)


def test_icon_is_first_frame_of_sheet(tmp_path):
    _write_images(tmp_path, _all_files())
    bundle = ImageBundle(tmp_path)
    bundle.load()

    assert bundle.icon("Inserter").get_size() == (32, 32)
    assert bundle.icon("Gear").get_size() == (64, 32)
    assert bundle.icon("Nuclear Reactor") is None


def test_missing_image_aborts_loading(tmp_path):
    files = _all_files()
    files.discard("furnace.png")
    _write_images(tmp_path, files)

    with pytest.raises(AssetLoadError) as info:
        ImageBundle(tmp_path).load()

    assert "furnace.png" in str(info.value)
    assert isinstance(info.value, InitializationError)
