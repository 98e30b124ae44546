"""Interval scheduler and simulation clocks."""
from __future__ import annotations

import time
from typing import Callable, Optional


class FixedStepClock:
    """Always reports the same step, like a fixed-interval timer."""

    def __init__(self, step: float = 0.05) -> None:
        self.step = step

    def delta(self) -> float:
        return self.step

    def reset(self) -> None:
        pass


class VariableStepClock:
    """Measures wall-clock time between ticks on a monotonic clock."""

    def __init__(
        self,
        max_step: float = 0.25,
        clock: Callable[[], float] = time.perf_counter,
        first_step: float = 0.05,
    ) -> None:
        self.max_step = max_step
        self.first_step = first_step
        self._clock = clock
        self._last: Optional[float] = None

    def delta(self) -> float:
        now = self._clock()
        if self._last is None:
            self._last = now
            return self.first_step
        elapsed = now - self._last
        self._last = now
        return max(0.0, min(elapsed, self.max_step))

    def reset(self) -> None:
        # Next delta is first_step again.
        self._last = None


def make_clock(mode: str, interval: float, max_step: float) -> FixedStepClock | VariableStepClock:
    if mode == "variable":
        return VariableStepClock(max_step=max_step, first_step=interval)
    return FixedStepClock(interval)


class FrameScheduler:
    """Runs ``tick`` once per interval while polling events continuously.

    Never more than one tick runs at a time; a late tick is not replayed, the
    next one is simply scheduled one interval later.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        process_events: Callable[[], None],
        present: Callable[[], None],
        interval: float = 0.05,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.tick = tick
        self.process_events = process_events
        self.present = present
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._running = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def run(self, max_ticks: Optional[int] = None) -> None:
        self._running = True
        next_tick = self._clock()
        while self._running:
            self.process_events()
            if not self._running:
                break
            now = self._clock()
            if now >= next_tick:
                self.tick()
                self.present()
                self.ticks += 1
                next_tick += self.interval
                if next_tick <= now:
                    next_tick = now + self.interval
                if max_ticks is not None and self.ticks >= max_ticks:
                    self._running = False
            else:
                self._sleep(min(next_tick - now, 0.005))


__all__ = ["FixedStepClock", "FrameScheduler", "VariableStepClock", "make_clock"]
