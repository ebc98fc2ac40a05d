"""Sample counters and the samples-per-second readout derived from them."""

from __future__ import annotations

import time
from typing import Callable, Optional

EPSILON = 1e-6


class ThroughputMeter:
    """Track how many samples a session has decoded since it started.

    The rate is recomputed from the clock on every call, so it never goes
    stale between samples.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.sample_count = 0
        self.dropped_frames = 0
        self.session_start: Optional[float] = None

    @property
    def started(self) -> bool:
        return self.session_start is not None

    def start(self) -> None:
        """Begin a new measurement window at the current time."""
        self.sample_count = 0
        self.dropped_frames = 0
        self.session_start = self._clock()

    # Clearing an active session restarts the window.
    reset = start

    def stop(self) -> None:
        self.sample_count = 0
        self.dropped_frames = 0
        self.session_start = None

    def count(self, samples: int = 1) -> None:
        self.sample_count += samples

    def count_dropped(self, frames: int = 1) -> None:
        self.dropped_frames += frames

    def elapsed(self) -> float:
        if self.session_start is None:
            return 0.0
        return max(self._clock() - self.session_start, 0.0)

    def rate(self) -> float:
        """Samples per second since the window started; 0 before any time passes."""
        elapsed = self.elapsed()
        if elapsed <= 0.0:
            return 0.0
        return self.sample_count / max(elapsed, EPSILON)
