"""Utilities for decoding EEG notification frames into structured samples."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from . import config


SEQUENCE_MODULO = 1 << 16


@dataclass(frozen=True)
class Sample:
    """One numbered reading across all EEG channels, in microvolts."""

    sequence: int
    channels_uv: Tuple[float, ...]


class DecodeError(Exception):
    """Signals that an incoming frame cannot be decoded."""


class WrongLengthError(DecodeError):
    """The frame does not have the size expected for the channel count."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} bytes, got {actual}")
        self.expected = expected
        self.actual = actual


class EmptyPayloadError(DecodeError):
    """The transport delivered a notification without any payload."""


def frame_length(channels: int = config.EEG_CHANNELS) -> int:
    """Size in bytes of one frame: u16 sequence followed by one f32 per channel."""
    return 2 + 4 * channels


@lru_cache(maxsize=None)
def _frame_struct(channels: int) -> struct.Struct:
    if channels < 1:
        raise ValueError(f"Channel count must be positive, got {channels}")
    return struct.Struct(f"<H{channels}f")


def decode_frame(
    raw: Optional[bytes], channels: int = config.EEG_CHANNELS
) -> Sample:
    """Decode one little-endian frame into a Sample.

    Layout is ``u16 sequence | f32 ch0 | ... | f32 ch{channels-1}``.
    Raises EmptyPayloadError when ``raw`` is None and WrongLengthError for
    any payload whose size differs from ``frame_length(channels)``."""
    if raw is None:
        raise EmptyPayloadError("Notification carried no payload")
    layout = _frame_struct(channels)
    if len(raw) != layout.size:
        raise WrongLengthError(layout.size, len(raw))
    sequence, *values = layout.unpack(bytes(raw))
    return Sample(sequence=sequence, channels_uv=tuple(values))


def encode_frame(sample: Sample) -> bytes:
    """Pack a Sample back into its wire representation."""
    layout = _frame_struct(len(sample.channels_uv))
    return layout.pack(sample.sequence % SEQUENCE_MODULO, *sample.channels_uv)
