"""Tests for the samples-per-second meter."""

import pytest

from eeg_monitor.throughput import ThroughputMeter


class TestThroughputMeter:
    def test_zero_before_start(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.count(10)
        clock.advance(1.0)
        assert meter.rate() == 0.0
        assert not meter.started

    def test_zero_right_after_reset(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(5)
        meter.reset()
        assert meter.sample_count == 0
        assert meter.rate() == 0.0

    def test_zero_when_no_time_has_passed(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(3)
        assert meter.rate() == 0.0

    def test_rate_from_count_and_elapsed(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(250)
        clock.advance(2.0)
        assert meter.rate() == pytest.approx(125.0)

    def test_rate_recomputed_on_demand(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(100)
        clock.advance(1.0)
        assert meter.rate() == pytest.approx(100.0)
        clock.advance(3.0)
        assert meter.rate() == pytest.approx(25.0)

    def test_clock_going_backwards_reads_zero(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(5)
        clock.advance(-1.0)
        assert meter.elapsed() == 0.0
        assert meter.rate() == 0.0

    def test_stop_clears_window(self, clock):
        meter = ThroughputMeter(clock=clock)
        meter.start()
        meter.count(4)
        meter.count_dropped(2)
        meter.stop()
        assert meter.sample_count == 0
        assert meter.dropped_frames == 0
        assert meter.session_start is None
