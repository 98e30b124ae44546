import pygame
import pytest
from conftest import FURNACE

from factorish.engine.frame import FrameController, FrameSurfaces, LoopState, viewport_rect
from factorish.engine.loop import FixedStepClock
from factorish.sim.events import PopupText, ShowInventoryAt, UpdatePlayerInventory
from factorish.ui.popups import PopupQueue


def _standard(bridge, deferred, popups, perf_calls=None):
    surfaces = FrameSurfaces(
        world=pygame.Surface((320, 240)),
        minimap=pygame.Surface((200, 200)),
        perf=pygame.Surface((100, 100), pygame.SRCALPHA),
    )
    draw = (lambda surface, labels: perf_calls.append(list(labels))) if perf_calls is not None else None
    return FrameController.standard(
        bridge,
        FixedStepClock(0.05),
        surfaces,
        popups,
        view_size=lambda: (320, 240),
        draw_perf=draw,
        deferred=deferred,
    )


def test_headless_controller_only_advances_and_dispatches(bridge, engine):
    frame = FrameController.headless(bridge, FixedStepClock(0.05))
    assert [stage.name for stage in frame.stages] == ["advance", "dispatch"]
    frame.tick()
    frame.tick()
    assert engine.time == pytest.approx(0.1)
    assert engine.called("render") == []


def test_standard_pipeline_order(bridge, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    assert [stage.name for stage in frame.stages] == ["advance", "dispatch", "world", "minimap", "popups", "perf"]


def test_tick_renders_world_and_minimap(bridge, engine, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    frame.tick()
    assert len(engine.called("render")) == 1
    assert len(engine.called("render_minimap")) == 1


def test_pause_stops_simulation_but_keeps_rendering(bridge, engine, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    assert frame.toggle_pause() is LoopState.PAUSED
    frame.tick()
    frame.tick()
    assert engine.time == 0.0
    assert frame.sim_time == 0.0
    assert len(engine.called("render")) == 2

    assert frame.toggle_pause() is LoopState.RUNNING
    frame.tick()
    assert engine.time == pytest.approx(0.05)


def test_events_go_to_registered_handlers(bridge, engine, deferred):
    popups = PopupQueue()
    frame = _standard(bridge, deferred, popups)
    seen = []
    frame.on(UpdatePlayerInventory, seen.append)
    frame.on(ShowInventoryAt, seen.append)
    frame.on(PopupText, lambda event: popups.push(event.text, (event.x, event.y)))
    engine.pending_events = [
        "UpdatePlayerInventory",
        {"ShowInventoryAt": {"pos": {"x": FURNACE[0], "y": FURNACE[1]}, "recipe_enable": True}},
        {"PopupText": ["+1", 32.0, 64.0]},
        {"Unknown": 1},
    ]

    frame.tick()

    assert seen == [UpdatePlayerInventory(), ShowInventoryAt(FURNACE, True)]
    # The popup stage runs after dispatch within the same tick.
    assert [(entry.text, entry.remaining_ticks) for entry in popups] == [("+1", 29)]


def test_deferred_work_is_flushed_within_the_tick(bridge, engine, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    ran = []
    frame.on(UpdatePlayerInventory, lambda event: deferred.call_soon(lambda: ran.append(event)))
    engine.pending_events = ["UpdatePlayerInventory"]
    frame.tick()
    assert ran == [UpdatePlayerInventory()]
    assert len(deferred) == 0


def test_perf_stage_runs_only_when_enabled(bridge, deferred):
    perf_calls = []
    frame = _standard(bridge, deferred, PopupQueue(), perf_calls)
    frame.tick()
    assert perf_calls == []

    frame.toggle_perf()
    frame.tick()
    assert perf_calls and perf_calls[0][0] == "simulate: 1.00 ms"
    assert any(label.startswith("advance:") for label in frame.perf_labels)


def test_disabled_stage_is_skipped(bridge, engine, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    frame.set_stage_enabled("world", False)
    frame.tick()
    assert engine.called("render") == []
    with pytest.raises(KeyError):
        frame.set_stage_enabled("missing", False)


def test_stage_durations_are_recorded(bridge, deferred):
    frame = _standard(bridge, deferred, PopupQueue())
    frame.tick()
    assert {entry.stage for entry in frame.telemetry.snapshot()} == {
        "advance",
        "dispatch",
        "world",
        "minimap",
        "popups",
        "perf",
    }


def test_viewport_rect_is_centred_and_clamped():
    assert viewport_rect((640, 320), 1.0, (200, 200)) == (90, 95, 20, 10)
    assert viewport_rect((640, 320), 2.0, (200, 200)) == (95, 97, 10, 5)
    assert viewport_rect((64000, 320), 1.0, (200, 200))[2] == 200
