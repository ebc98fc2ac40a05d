"""Per-channel state built up from decoded samples."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np

from . import config
from .buffers import ChannelHistory
from .data_parser import SEQUENCE_MODULO, Sample

logger = logging.getLogger(__name__)


class SampleAggregator:
    """Apply samples to the channel histories and keep the latest readouts.

    Channel ``i`` of every sample always lands in history ``i``. Sequence
    numbers are diagnostic only: samples are applied in arrival order and
    never reordered or deduplicated, though non-consecutive numbers are
    counted in ``sequence_gaps``.
    """

    def __init__(
        self,
        channels: int = config.EEG_CHANNELS,
        capacity: int = config.HISTORY_CAPACITY,
    ) -> None:
        if channels < 1:
            raise ValueError(f"Channel count must be positive, got {channels}")
        self.channels = channels
        self.capacity = capacity
        self._histories = [ChannelHistory(capacity) for _ in range(channels)]
        self._latest_values: Tuple[float, ...] = (0.0,) * channels
        self._latest_sequence = 0
        self._previous_sequence: Optional[int] = None
        self.sequence_gaps = 0

    def apply_sample(self, sample: Sample, record_history: bool = True) -> None:
        """Update the latest readouts and, when recording, every history."""
        if len(sample.channels_uv) != self.channels:
            raise ValueError(
                f"Expected {self.channels} channels, got {len(sample.channels_uv)}"
            )
        if self._previous_sequence is not None:
            expected = (self._previous_sequence + 1) % SEQUENCE_MODULO
            if sample.sequence != expected:
                self.sequence_gaps += 1
                logger.debug(
                    "Sequence jumped from %d to %d",
                    self._previous_sequence,
                    sample.sequence,
                )
        self._previous_sequence = sample.sequence

        self._latest_sequence = sample.sequence
        self._latest_values = tuple(sample.channels_uv)
        if record_history:
            for history, value in zip(self._histories, sample.channels_uv):
                history.push(value)

    def latest_channel_values(self) -> Tuple[float, ...]:
        return self._latest_values

    def latest_sequence(self) -> int:
        return self._latest_sequence

    def history_snapshot(self) -> List[np.ndarray]:
        """Copies of every channel history, oldest to newest."""
        return [history.snapshot() for history in self._histories]

    def history_lengths(self) -> List[int]:
        return [len(history) for history in self._histories]

    def reset(self) -> None:
        for history in self._histories:
            history.clear()
        self._latest_values = (0.0,) * self.channels
        self._latest_sequence = 0
        self._previous_sequence = None
        self.sequence_gaps = 0
