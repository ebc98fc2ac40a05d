"""Generate mock EEG data for development without hardware."""

from __future__ import annotations

import math
import random
import time
from typing import Iterator

from . import config
from .data_parser import SEQUENCE_MODULO, Sample


def eeg_waveform_generator(
    channels: int = config.EEG_CHANNELS,
    frequency_hz: float = 10.0,
    noise_level: float = 5.0,
) -> Iterator[Sample]:
    """Yield synthetic alpha-band EEG samples in microvolts."""
    sequence = 0
    phase_offsets = [random.random() * math.pi for _ in range(channels)]
    start = time.monotonic()
    while True:
        t = time.monotonic() - start
        values = []
        for phase in phase_offsets:
            base = math.sin(2 * math.pi * frequency_hz * t + phase) * 40.0
            values.append(base + random.gauss(0, noise_level))
        yield Sample(sequence=sequence, channels_uv=tuple(values))
        sequence = (sequence + 1) % SEQUENCE_MODULO
