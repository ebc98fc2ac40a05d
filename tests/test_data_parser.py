"""Tests for frame decoding."""

import math

import pytest

from eeg_monitor.data_parser import (
    EmptyPayloadError,
    Sample,
    WrongLengthError,
    decode_frame,
    encode_frame,
    frame_length,
)

from conftest import make_frame

REFERENCE_FRAME = bytes(
    [
        0x01, 0x00,
        0x00, 0x00, 0x80, 0x3F,
        0x00, 0x00, 0x00, 0x40,
        0x00, 0x00, 0x40, 0x40,
        0x00, 0x00, 0x80, 0x40,
    ]
)


class TestDecodeFrame:
    def test_reference_frame(self):
        sample = decode_frame(REFERENCE_FRAME)
        assert sample == Sample(sequence=1, channels_uv=(1.0, 2.0, 3.0, 4.0))

    def test_accepts_bytearray(self):
        assert decode_frame(bytearray(REFERENCE_FRAME)).sequence == 1

    def test_sequence_is_little_endian_unsigned(self):
        sample = decode_frame(make_frame(0xFFFE, 0.0, 0.0, 0.0, 0.0))
        assert sample.sequence == 65534
        sample = decode_frame(bytes([0x34, 0x12]) + bytes(16))
        assert sample.sequence == 0x1234

    def test_negative_and_fractional_values(self):
        sample = decode_frame(make_frame(7, -12.5, 0.25, -0.0, 1024.0))
        assert sample.channels_uv == (-12.5, 0.25, -0.0, 1024.0)

    @pytest.mark.parametrize("length", [0, 1, 2, 17, 19, 20, 36])
    def test_wrong_length_rejected(self, length):
        with pytest.raises(WrongLengthError) as excinfo:
            decode_frame(bytes(length))
        assert excinfo.value.expected == 18
        assert excinfo.value.actual == length

    def test_missing_payload_rejected(self):
        with pytest.raises(EmptyPayloadError):
            decode_frame(None)

    def test_non_finite_values_pass_through(self):
        sample = decode_frame(make_frame(3, float("nan"), float("inf"), 0.0, 0.0))
        assert math.isnan(sample.channels_uv[0])
        assert math.isinf(sample.channels_uv[1])

    def test_sample_is_immutable(self):
        sample = decode_frame(REFERENCE_FRAME)
        with pytest.raises(AttributeError):
            sample.sequence = 2


class TestChannelCount:
    def test_frame_length(self):
        assert frame_length() == 18
        assert frame_length(8) == 34

    def test_eight_channel_frame(self):
        values = tuple(float(i) for i in range(8))
        sample = decode_frame(make_frame(9, *values), channels=8)
        assert sample.channels_uv == values

    def test_four_channel_frame_rejected_for_eight_channels(self):
        with pytest.raises(WrongLengthError):
            decode_frame(REFERENCE_FRAME, channels=8)

    def test_invalid_channel_count(self):
        with pytest.raises(ValueError):
            decode_frame(b"\x00\x00", channels=0)


def test_encode_matches_wire_layout():
    assert encode_frame(Sample(1, (1.0, 2.0, 3.0, 4.0))) == REFERENCE_FRAME
