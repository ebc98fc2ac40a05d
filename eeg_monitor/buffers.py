"""Data buffers holding the recent history of each EEG channel."""

from __future__ import annotations

import numpy as np


class ChannelHistory:
    """Maintain a fixed-size rolling window of one channel's readings."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = np.zeros(capacity, dtype=np.float64)
        self._index = 0
        self._filled = False

    def __len__(self) -> int:
        return self.capacity if self._filled else self._index

    def push(self, value: float) -> None:
        # Overwrites the oldest slot once the window is full.
        self._data[self._index] = value
        self._index = (self._index + 1) % self.capacity
        if self._index == 0:
            self._filled = True

    def snapshot(self) -> np.ndarray:
        """Return a copy ordered from oldest to newest."""
        if not self._filled:
            return self._data[: self._index].copy()
        idx = self._index
        return np.concatenate((self._data[idx:], self._data[:idx]))

    def clear(self) -> None:
        self._data.fill(0)
        self._index = 0
        self._filled = False
