"""Tests for the per-channel history window."""

import numpy as np
import pytest

from eeg_monitor.buffers import ChannelHistory


class TestChannelHistory:
    def test_starts_empty(self):
        history = ChannelHistory(capacity=5)
        assert len(history) == 0
        assert history.snapshot().size == 0

    @pytest.mark.parametrize("pushes", [0, 1, 4, 5, 6, 13, 100])
    def test_keeps_last_capacity_values(self, pushes):
        capacity = 5
        history = ChannelHistory(capacity=capacity)
        for value in range(pushes):
            history.push(float(value))
        expected = [float(v) for v in range(pushes)][-capacity:] if pushes else []
        snapshot = history.snapshot()
        assert len(snapshot) == min(pushes, capacity)
        np.testing.assert_array_equal(snapshot, expected)

    def test_snapshot_is_a_copy(self):
        history = ChannelHistory(capacity=3)
        history.push(1.0)
        history.push(2.0)
        snapshot = history.snapshot()
        snapshot[0] = 99.0
        history.push(3.0)
        np.testing.assert_array_equal(history.snapshot(), [1.0, 2.0, 3.0])

    def test_snapshot_survives_eviction(self):
        history = ChannelHistory(capacity=2)
        history.push(1.0)
        history.push(2.0)
        before = history.snapshot()
        history.push(3.0)
        np.testing.assert_array_equal(before, [1.0, 2.0])
        np.testing.assert_array_equal(history.snapshot(), [2.0, 3.0])

    def test_values_kept_at_full_precision(self):
        history = ChannelHistory(capacity=3)
        for value in (0.1, -12.345678901, 1e-7):
            history.push(value)
        assert history.snapshot().tolist() == [0.1, -12.345678901, 1e-7]

    def test_clear(self):
        history = ChannelHistory(capacity=3)
        for value in (1.0, 2.0, 3.0, 4.0):
            history.push(value)
        history.clear()
        assert len(history) == 0
        history.push(5.0)
        np.testing.assert_array_equal(history.snapshot(), [5.0])

    def test_capacity_of_one(self):
        history = ChannelHistory(capacity=1)
        history.push(1.0)
        history.push(2.0)
        np.testing.assert_array_equal(history.snapshot(), [2.0])

    @pytest.mark.parametrize("capacity", [0, -3])
    def test_rejects_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            ChannelHistory(capacity=capacity)
