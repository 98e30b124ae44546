"""Per-tick orchestration as an ordered pipeline of stages."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

import pygame

from factorish.engine.deferred import DeferredQueue
from factorish.engine.logger import ChannelLogger, GameLogger, null_logger
from factorish.engine.loop import FixedStepClock, VariableStepClock
from factorish.engine.telemetry import FrameTelemetry
from factorish.sim.bridge import EngineBridge
from factorish.sim.events import EngineEvent
from factorish.ui.popups import PopupQueue

TILE_SIZE = 32
VIEWPORT_COLOR = (0, 0, 255)


class LoopState(Enum):
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class FrameContext:
    """Data handed from one stage to the next within a single tick."""

    delta: float = 0.0
    events: List[EngineEvent] = field(default_factory=list)
    advanced: bool = False


@dataclass
class FrameStage:
    name: str
    run: Callable[[FrameContext], None]
    enabled: bool = True


@dataclass
class FrameSurfaces:
    world: Optional[pygame.Surface] = None
    minimap: Optional[pygame.Surface] = None
    perf: Optional[pygame.Surface] = None


def viewport_rect(
    view_size: Tuple[int, int],
    scale: float,
    minimap_size: Tuple[int, int],
    tile_size: int = TILE_SIZE,
) -> Tuple[int, int, int, int]:
    """Rectangle on a one-pixel-per-tile minimap centred on the view."""

    scale = scale if scale > 0 else 1.0
    width = max(1, round(view_size[0] / (scale * tile_size)))
    height = max(1, round(view_size[1] / (scale * tile_size)))
    width = min(width, minimap_size[0])
    height = min(height, minimap_size[1])
    x = (minimap_size[0] - width) // 2
    y = (minimap_size[1] - height) // 2
    return x, y, width, height


class FrameController:
    """Advances the simulation and refreshes every UI surface once per tick.

    Stages run in registration order and can be disabled by name, so a
    headless controller runs only ``advance`` and ``dispatch``.
    """

    def __init__(
        self,
        bridge: EngineBridge,
        clock: FixedStepClock | VariableStepClock,
        deferred: Optional[DeferredQueue] = None,
        telemetry: Optional[FrameTelemetry] = None,
        logger: Optional[GameLogger] = None,
    ) -> None:
        self.bridge = bridge
        self.clock = clock
        self.deferred = deferred or DeferredQueue()
        self.telemetry = telemetry or FrameTelemetry()
        self.log: ChannelLogger = (logger or null_logger()).channel("loop")
        self.state = LoopState.RUNNING
        self.stages: List[FrameStage] = []
        self.sim_time = 0.0
        self.ticks = 0
        self.perf_enabled = False
        self.perf_labels: List[str] = []
        self.surfaces = FrameSurfaces()
        self._handlers: Dict[Type, List[Callable[[EngineEvent], None]]] = {}

    @classmethod
    def headless(
        cls,
        bridge: EngineBridge,
        clock: FixedStepClock | VariableStepClock,
        deferred: Optional[DeferredQueue] = None,
        logger: Optional[GameLogger] = None,
    ) -> "FrameController":
        controller = cls(bridge, clock, deferred=deferred, logger=logger)
        controller.add_stage("advance", controller._advance)
        controller.add_stage("dispatch", controller._dispatch)
        return controller

    @classmethod
    def standard(
        cls,
        bridge: EngineBridge,
        clock: FixedStepClock | VariableStepClock,
        surfaces: FrameSurfaces,
        popups: PopupQueue,
        view_size: Callable[[], Tuple[int, int]],
        draw_perf: Optional[Callable[[pygame.Surface, Sequence[str]], None]] = None,
        deferred: Optional[DeferredQueue] = None,
        logger: Optional[GameLogger] = None,
    ) -> "FrameController":
        controller = cls.headless(bridge, clock, deferred=deferred, logger=logger)
        controller.surfaces = surfaces
        controller.add_stage("world", controller._render_world)
        controller.add_stage("minimap", lambda ctx: controller._render_minimap(view_size()))
        controller.add_stage("popups", lambda ctx: popups.tick())
        controller.add_stage("perf", lambda ctx: controller._render_perf(draw_perf))
        return controller

    # ------------------------------------------------------------------
    def add_stage(self, name: str, run: Callable[[FrameContext], None]) -> FrameStage:
        if any(stage.name == name for stage in self.stages):
            raise KeyError(f"Frame stage '{name}' already exists")
        stage = FrameStage(name=name, run=run)
        self.stages.append(stage)
        return stage

    def stage(self, name: str) -> FrameStage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(f"Frame stage '{name}' is not registered")

    def set_stage_enabled(self, name: str, enabled: bool) -> None:
        self.stage(name).enabled = enabled

    def on(self, event_type: Type, handler: Callable[[EngineEvent], None]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    def toggle_pause(self) -> LoopState:
        if self.state is LoopState.RUNNING:
            self.state = LoopState.PAUSED
        else:
            self.state = LoopState.RUNNING
            self.clock.reset()
        self.log.info("Simulation %s", self.state.value)
        return self.state

    def toggle_perf(self) -> bool:
        self.perf_enabled = not self.perf_enabled
        return self.perf_enabled

    # ------------------------------------------------------------------
    def tick(self) -> FrameContext:
        context = FrameContext()
        for stage in self.stages:
            if not stage.enabled:
                continue
            start = time.perf_counter()
            stage.run(context)
            self.telemetry.record(stage.name, (time.perf_counter() - start) * 1000.0)
            self.deferred.flush()
        self.ticks += 1
        self.telemetry.end_tick()
        self.telemetry.advance_time(context.delta, self.log)
        return context

    def dispatch(self, events: Sequence[EngineEvent]) -> None:
        for event in events:
            handlers = self._handlers.get(type(event), ())
            if not handlers:
                self.log.debug("No handler for %s", event)
            for handler in handlers:
                handler(event)
            self.deferred.flush()

    # ------------------------------------------------------------------
    def _advance(self, context: FrameContext) -> None:
        if not self.running:
            return
        context.delta = self.clock.delta()
        context.events = self.bridge.simulate(context.delta)
        context.advanced = True
        self.sim_time += context.delta

    def _dispatch(self, context: FrameContext) -> None:
        self.dispatch(context.events)

    def _render_world(self, context: FrameContext) -> None:
        if self.surfaces.world is not None:
            self.bridge.render(self.surfaces.world)

    def _render_minimap(self, view_size: Tuple[int, int]) -> None:
        minimap = self.surfaces.minimap
        if minimap is None:
            return
        self.bridge.render_minimap(minimap)
        rect = viewport_rect(view_size, self.bridge.viewport_scale(), minimap.get_size())
        pygame.draw.rect(minimap, VIEWPORT_COLOR, pygame.Rect(rect), 1)

    def _render_perf(self, draw: Optional[Callable[[pygame.Surface, Sequence[str]], None]]) -> None:
        if not self.perf_enabled or self.surfaces.perf is None:
            return
        labels = self.bridge.render_perf(self.surfaces.perf)
        labels.extend(self.telemetry.labels())
        self.perf_labels = labels
        if draw is not None:
            draw(self.surfaces.perf, labels)


__all__ = [
    "FrameContext",
    "FrameController",
    "FrameStage",
    "FrameSurfaces",
    "LoopState",
    "viewport_rect",
]
