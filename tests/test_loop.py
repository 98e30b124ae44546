import pytest

from factorish.engine.deferred import MAX_FLUSH_ROUNDS, DeferredQueue
from factorish.engine.loop import FixedStepClock, FrameScheduler, VariableStepClock, make_clock
from factorish.engine.telemetry import PERF_HISTORY, FrameTelemetry, PerfStats


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_variable_clock_caps_long_gaps():
    clock = FakeClock()
    step = VariableStepClock(max_step=0.25, clock=clock, first_step=0.05)
    assert step.delta() == 0.05
    clock.now = 0.1
    assert step.delta() == pytest.approx(0.1)
    clock.now = 10.0
    assert step.delta() == 0.25


def test_variable_clock_reset_restarts_from_first_step():
    clock = FakeClock()
    step = VariableStepClock(clock=clock, first_step=0.02)
    step.delta()
    clock.now = 3.0
    step.reset()
    assert step.delta() == 0.02


def test_make_clock_picks_mode():
    assert isinstance(make_clock("fixed", 0.05, 0.25), FixedStepClock)
    variable = make_clock("variable", 0.05, 0.1)
    assert isinstance(variable, VariableStepClock)
    assert variable.max_step == 0.1


def test_scheduler_ticks_once_per_interval():
    clock = FakeClock()
    order = []
    scheduler = FrameScheduler(
        tick=lambda: order.append(("tick", round(clock.now, 3))),
        process_events=lambda: None,
        present=lambda: order.append(("present",)),
        interval=0.05,
        clock=clock,
        sleep=clock.sleep,
    )
    scheduler.run(max_ticks=3)

    ticks = [entry[1] for entry in order if entry[0] == "tick"]
    assert ticks == [0.0, 0.05, 0.1]
    assert order[1] == ("present",)
    assert all(seconds <= 0.005 + 1e-9 for seconds in clock.sleeps)
    assert not scheduler.running


def test_scheduler_stops_from_event_processing():
    clock = FakeClock()
    ticks = []
    scheduler = None

    def process_events():
        if len(ticks) == 2:
            scheduler.stop()

    scheduler = FrameScheduler(
        tick=lambda: ticks.append(clock.now),
        process_events=process_events,
        present=lambda: None,
        interval=0.05,
        clock=clock,
        sleep=clock.sleep,
    )
    scheduler.run()
    assert len(ticks) == 2


def test_late_tick_is_not_replayed():
    clock = FakeClock()
    ticks = []

    def slow_tick():
        ticks.append(clock.now)
        clock.now += 0.5

    scheduler = FrameScheduler(slow_tick, lambda: None, lambda: None, 0.05, clock=clock, sleep=clock.sleep)
    scheduler.run(max_ticks=2)
    assert ticks[1] - ticks[0] == pytest.approx(0.55)


def test_nested_callbacks_run_in_same_flush():
    queue = DeferredQueue()
    ran = []

    def outer():
        ran.append("outer")
        queue.call_soon(lambda: ran.append("inner"))

    queue.call_soon(outer)
    assert queue.flush() == 2
    assert ran == ["outer", "inner"]
    assert len(queue) == 0


def test_reentrant_flush_is_a_no_op():
    queue = DeferredQueue()
    results = []
    queue.call_soon(lambda: results.append(queue.flush()))
    queue.flush()
    assert results == [0]


def test_runaway_rescheduling_is_capped():
    queue = DeferredQueue()

    def again():
        queue.call_soon(again)

    queue.call_soon(again)
    assert queue.flush() == MAX_FLUSH_ROUNDS
    assert len(queue) == 1


def test_perf_stats_moving_average_and_history():
    stats = PerfStats()
    for sample in range(PERF_HISTORY + 5):
        stats.add(float(sample))
    assert len(stats.values) == PERF_HISTORY
    assert len(stats.ma_values) == PERF_HISTORY
    last = PERF_HISTORY + 4
    assert stats.recent_average == pytest.approx(sum(range(last - 9, last + 1)) / 10)


def test_telemetry_labels_use_moving_average():
    telemetry = FrameTelemetry()
    telemetry.record("world", 2.0)
    telemetry.record("world", 4.0)
    telemetry.end_tick()
    assert list(telemetry.labels()) == ["world: 3.00 ms"]
    assert telemetry.ticks == 1


def test_failing_callback_keeps_rest_of_batch_queued():
    queue = DeferredQueue()
    ran = []

    def boom():
        raise RuntimeError("boom")

    queue.call_soon(boom)
    queue.call_soon(lambda: ran.append("second"))
    with pytest.raises(RuntimeError):
        queue.flush()
    assert len(queue) == 1
    assert not queue.flushing

    assert queue.flush() == 1
    assert ran == ["second"]
