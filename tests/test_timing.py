"""Tests for replay timing: delay computation and delivery."""

import asyncio
import threading

import pytest

from http_vcr.core.timing import (
    TimeFrame,
    TimingSimulator,
    compute_delay,
    speed_multiplier,
)


# ===== compute_delay =====


class TestComputeDelay:
    """Tests for the delay formula."""

    @pytest.mark.parametrize(
        "speed, expected",
        [
            ("lower", 2000.0),
            ("lowest", 4000.0),
            ("fast", 500.0),
            ("original", 1000.0),
            ("warp-speed", 1000.0),
        ],
    )
    def test_speed_scaling(self, speed, expected):
        """A 1000 ms original with no elapsed time scales by speed."""
        frame = TimeFrame(original_start=0, original_end=1000, replay_start=5000)
        assert compute_delay(speed, frame, now=5000) == pytest.approx(expected)

    def test_fastest_is_zero(self):
        frame = TimeFrame(original_start=0, original_end=1000, replay_start=0)
        assert compute_delay("fastest", frame, now=0) == 0.0

    def test_elapsed_time_subtracted_before_scaling(self):
        """Pipeline time already spent is removed, then the multiplier applies."""
        frame = TimeFrame(original_start=0, original_end=1000, replay_start=5000)
        assert compute_delay("lower", frame, now=5200) == pytest.approx(1600.0)

    def test_negative_delay_clamped(self):
        """Replays slower than the original deliver immediately."""
        frame = TimeFrame(original_start=0, original_end=100, replay_start=0)
        assert compute_delay("original", frame, now=500) == 0.0

    def test_unknown_speed_multiplier_is_one(self):
        assert speed_multiplier("???") == 1.0
        assert speed_multiplier("fast") == 0.5


# ===== TimingSimulator =====


class TestTimingSimulator:
    """Tests for delivery scheduling."""

    def test_fastest_delivers_synchronously(self, clock, scheduler):
        """fastest calls deliver at once and schedules no timer."""
        delivered = []
        sim = TimingSimulator(clock=clock, scheduler=scheduler)

        handle = sim.deliver(
            "fastest", b"body", delivered.append, TimeFrame(0, 1000, clock.now)
        )

        assert delivered == [b"body"]
        assert handle is None
        assert scheduler.scheduled == []

    @pytest.mark.parametrize(
        "speed, expected_ms",
        [("lower", 2000.0), ("lowest", 4000.0), ("fast", 500.0), ("original", 1000.0)],
    )
    def test_scheduled_delay(self, clock, scheduler, speed, expected_ms):
        delivered = []
        sim = TimingSimulator(clock=clock, scheduler=scheduler)

        sim.deliver(speed, b"body", delivered.append, TimeFrame(0, 1000, clock.now))

        assert delivered == []
        assert scheduler.delays_ms == [pytest.approx(expected_ms)]
        scheduler.fire_all()
        assert delivered == [b"body"]

    def test_negative_delay_scheduled_at_zero(self, clock, scheduler):
        delivered = []
        sim = TimingSimulator(clock=clock, scheduler=scheduler)
        frame = TimeFrame(0, 10, clock.now)
        clock.advance(50)

        sim.deliver("original", b"late", delivered.append, frame)

        assert scheduler.delays_ms == [0.0]

    def test_single_timer_per_delivery(self, clock, scheduler):
        sim = TimingSimulator(clock=clock, scheduler=scheduler)
        sim.deliver("fast", b"x", lambda body: None, TimeFrame(0, 100, clock.now))
        assert len(scheduler.scheduled) == 1

    @pytest.mark.asyncio
    async def test_default_scheduler_uses_event_loop(self):
        """The default scheduler is non-blocking and fires on the loop."""
        delivered = asyncio.Event()
        received = []

        def deliver(body: bytes) -> None:
            received.append(body)
            delivered.set()

        sim = TimingSimulator()
        now = sim.clock()
        handle = sim.deliver("original", b"later", deliver, TimeFrame(0, 20, now))

        assert isinstance(handle, asyncio.TimerHandle)
        assert received == []
        await asyncio.wait_for(delivered.wait(), timeout=2.0)
        assert received == [b"later"]

    def test_default_scheduler_without_event_loop(self):
        """Synchronous callers get a timer thread instead of an error."""
        delivered = threading.Event()
        received = []

        def deliver(body: bytes) -> None:
            received.append(body)
            delivered.set()

        sim = TimingSimulator()
        handle = sim.deliver("original", b"later", deliver, TimeFrame(0, 20, sim.clock()))

        assert isinstance(handle, threading.Timer)
        assert delivered.wait(timeout=2.0)
        assert received == [b"later"]
