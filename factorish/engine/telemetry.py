"""Lightweight runtime telemetry for the frame pipeline."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List

from factorish.engine.logger import ChannelLogger

MOVING_AVERAGE = 10
PERF_HISTORY = 200
LOG_PERIOD = 5.0


@dataclass
class PerfStats:
    """Sample history with a trailing moving average."""

    values: Deque[float] = field(default_factory=deque)
    ma_values: Deque[float] = field(default_factory=deque)
    total: float = 0.0
    count: int = 0

    def add(self, sample: float) -> None:
        self.values.append(sample)
        while len(self.values) > PERF_HISTORY:
            self.values.popleft()
        recent = list(self.values)[-MOVING_AVERAGE:]
        self.ma_values.append(sum(recent) / len(recent))
        while len(self.ma_values) > PERF_HISTORY:
            self.ma_values.popleft()
        self.total += sample
        self.count += 1

    @property
    def average(self) -> float:
        if self.count <= 0:
            return 0.0
        return self.total / self.count

    @property
    def recent_average(self) -> float:
        return self.ma_values[-1] if self.ma_values else 0.0


@dataclass
class StageTimingSnapshot:
    stage: str
    last_ms: float
    moving_ms: float
    overall_ms: float


@dataclass
class FrameTelemetry:
    """Per-stage duration history for the frame pipeline."""

    stages: Dict[str, PerfStats] = field(default_factory=dict)
    ticks: int = 0
    _log_accumulator: float = 0.0

    def record(self, stage: str, duration_ms: float) -> None:
        self.stages.setdefault(stage, PerfStats()).add(duration_ms)

    def end_tick(self) -> None:
        self.ticks += 1

    def snapshot(self) -> List[StageTimingSnapshot]:
        result = []
        for name, stats in self.stages.items():
            result.append(
                StageTimingSnapshot(
                    stage=name,
                    last_ms=stats.values[-1] if stats.values else 0.0,
                    moving_ms=stats.recent_average,
                    overall_ms=stats.average,
                )
            )
        return result

    def labels(self) -> Iterable[str]:
        for entry in self.snapshot():
            yield f"{entry.stage}: {entry.moving_ms:.2f} ms"

    def advance_time(self, dt: float, logger: ChannelLogger | None = None) -> None:
        self._log_accumulator += dt
        if self._log_accumulator >= LOG_PERIOD:
            self._log_accumulator = 0.0
            if logger and logger.enabled:
                logger.info(
                    "Frame stages after %d ticks: %s",
                    self.ticks,
                    ", ".join(self.labels()),
                )


__all__ = ["FrameTelemetry", "PerfStats", "StageTimingSnapshot", "MOVING_AVERAGE", "PERF_HISTORY"]
