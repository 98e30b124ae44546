"""Entry point for the Factorish desktop shell."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pygame

from factorish.assets.loader import ImageBundle
from factorish.engine.deferred import DeferredQueue
from factorish.engine.input import InputBindings, InputMapper
from factorish.engine.logger import init_logger
from factorish.engine.loop import FrameScheduler
from factorish.engine.scene import SceneManager
from factorish.engine.settings import load_settings
from factorish.engine.storage import SaveSlot
from factorish.errors import InitializationError
from factorish.render.gl_present import GLPresenter, configure_gl_attributes
from factorish.sim.bridge import EngineBridge, create_engine, load_engine_factory
from factorish.ui.alert_scene import AlertScene
from factorish.ui.factory_scene import FactoryScene
from factorish.ui.popups import PopupQueue


SETTINGS_PATH = Path("settings.json")


def main() -> None:
    settings = load_settings(SETTINGS_PATH)
    logger = init_logger(SETTINGS_PATH)
    pygame.init()
    resolution = settings.resolution

    presenter: Optional[GLPresenter] = None
    if settings.renderer == "gl":
        pygame.display.set_mode(resolution, configure_gl_attributes())
        presenter = GLPresenter()
        ui_surface = pygame.Surface(resolution, pygame.SRCALPHA)
    else:
        ui_surface = pygame.display.set_mode(resolution)
    pygame.display.set_caption("Factorish")

    input_mapper = InputMapper(InputBindings.load(SETTINGS_PATH))
    deferred = DeferredQueue()
    popups = PopupQueue()
    save_slot = SaveSlot(settings.storage_path)

    manager = SceneManager()
    manager.register("factory", FactoryScene)
    manager.register("alert", AlertScene)
    manager.set_context(logger=logger)

    def on_player_update(payload=None) -> None:
        scene = manager.active()
        if isinstance(scene, FactoryScene):
            scene.on_player_update(payload)

    def on_popup_text(text: str, x: float, y: float) -> None:
        scene = manager.active()
        if isinstance(scene, FactoryScene):
            scene.on_popup_text(text, x, y)

    try:
        images = ImageBundle(settings.asset_root, logger)
        images.load()
        factory = load_engine_factory(settings.engine)
        engine = create_engine(factory, images.images, on_player_update, on_popup_text)
        bridge = EngineBridge(engine, logger)
    except InitializationError as exc:
        manager.activate("alert", message=str(exc))
    else:
        blob = save_slot.load()
        if blob is not None:
            restored = bridge.deserialize(blob)
            logger.channel("engine").info("Restored saved game from %s: %s", save_slot.path, restored)
        manager.activate(
            "factory",
            bridge=bridge,
            images=images,
            input=input_mapper,
            settings=settings,
            deferred=deferred,
            popups=popups,
            save_slot=save_slot,
            surface_size=resolution,
        )

    def process_events() -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                scheduler.stop()
                return
            manager.handle_event(event)
            if manager.quit_requested:
                scheduler.stop()
                return

    def present() -> None:
        manager.render(ui_surface)
        if presenter is not None:
            presenter.present(ui_surface)
        else:
            pygame.display.flip()

    scheduler = FrameScheduler(
        manager.tick,
        process_events,
        present,
        interval=settings.tick_interval,
    )

    try:
        scheduler.run()
    finally:
        scene = manager.active()
        if isinstance(scene, FactoryScene):
            scene.save()
        manager.shutdown()
        if presenter is not None:
            presenter.release()
        pygame.quit()


if __name__ == "__main__":
    main()
