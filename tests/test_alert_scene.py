import pygame
import pytest
from conftest import quiet_logger

from factorish.engine.scene import Scene, SceneManager
from factorish.ui.alert_scene import AlertScene, wrap_text


def test_wrap_text_breaks_on_words():
    assert wrap_text("Failed to load image 'img/furnace.png'", 20) == ["Failed to load image", "'img/furnace.png'"]
    assert wrap_text("", 10) == [""]
    assert wrap_text("first\nsecond", 40) == ["first", "second"]


@pytest.mark.parametrize(
    "event",
    [
        pygame.event.Event(pygame.KEYDOWN, key=pygame.K_SPACE, mod=0),
        pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(5, 5), button=1),
    ],
)
def test_any_key_or_click_requests_quit(event):
    manager = SceneManager()
    manager.register("alert", AlertScene)
    manager.activate("alert", message="No simulation engine configured", logger=quiet_logger())

    manager.handle_event(event)

    assert manager.quit_requested


def test_alert_renders_message():
    manager = SceneManager()
    manager.register("alert", AlertScene)
    scene = manager.activate("alert", message="Engine construction failed: boom")
    surface = pygame.Surface((640, 480))
    scene.render(surface)
    assert tuple(surface.get_at((0, 0)))[:3] == (40, 0, 0)


class RecordingScene(Scene):
    def __init__(self, manager):
        super().__init__(manager)
        self.entered = None
        self.exited = False

    def on_enter(self, **kwargs):
        self.entered = kwargs

    def on_exit(self):
        self.exited = True


def test_scene_manager_merges_context_and_exits_previous():
    manager = SceneManager()
    manager.register("first", RecordingScene)
    manager.register("second", RecordingScene)
    manager.set_context(logger="shared")

    first = manager.activate("first", value=1)
    second = manager.activate("second", logger="override")

    assert first.entered == {"logger": "shared", "value": 1}
    assert first.exited
    assert second.entered == {"logger": "override"}
    assert manager.active_name == "second"

    manager.shutdown()
    assert second.exited
    assert manager.active() is None


def test_unknown_scene_is_rejected():
    with pytest.raises(KeyError):
        SceneManager().activate("missing")
