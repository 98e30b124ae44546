"""Deferred callbacks that run once the current engine call has unwound."""
from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque

LOGGER = logging.getLogger(__name__)

# Guards against a callback that keeps rescheduling itself forever.
MAX_FLUSH_ROUNDS = 64


class DeferredQueue:
    """FIFO of zero-argument callbacks flushed between engine calls.

    Callbacks scheduled while a flush is in progress run in the same flush,
    so nothing is left pending once ``flush`` returns.
    """

    def __init__(self) -> None:
        self._pending: Deque[Callable[[], None]] = deque()
        self._flushing = False

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def flushing(self) -> bool:
        return self._flushing

    def flush(self) -> int:
        if self._flushing:
            return 0
        self._flushing = True
        ran = 0
        try:
            rounds = 0
            while self._pending:
                rounds += 1
                if rounds > MAX_FLUSH_ROUNDS:
                    LOGGER.warning("Deferred queue still busy after %d rounds; %d callbacks left", rounds - 1, len(self._pending))
                    break
                batch = list(self._pending)
                self._pending.clear()
                for position, callback in enumerate(batch):
                    try:
                        callback()
                    except Exception:
                        # Unrun callbacks stay queued ahead of anything scheduled since.
                        self._pending.extendleft(reversed(batch[position + 1 :]))
                        raise
                    ran += 1
        finally:
            self._flushing = False
        return ran


__all__ = ["DeferredQueue"]
