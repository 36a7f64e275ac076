"""Timing simulation for replayed responses.

Replayed bodies are delivered after a delay derived from the original
upstream latency, net of the time the replay already spent in the pipeline,
and scaled by the configured speed:

    delay = ((end - start) - (now - replay_start)) * multiplier

``fastest`` skips the timer entirely. Negative delays deliver at once.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Literal, NamedTuple, Optional, Union

logger = logging.getLogger(__name__)


Speed = Literal["fastest", "lower", "lowest", "fast", "original"]

SPEED_MULTIPLIERS = {
    "lower": 2.0,  # twice as slow as the original
    "lowest": 4.0,
    "fast": 0.5,  # twice as fast
}

Clock = Callable[[], float]
Scheduler = Callable[[float, Callable[[], None]], Any]


def now_ms() -> float:
    """Current wall-clock time in milliseconds since epoch."""
    return time.time() * 1000.0


def asyncio_scheduler(
    delay_s: float, callback: Callable[[], None]
) -> Union[asyncio.TimerHandle, threading.Timer]:
    """Schedule ``callback`` after ``delay_s`` seconds without blocking.

    Uses the running event loop when there is one. Hooks driven from plain
    synchronous code get a daemon ``threading.Timer`` instead, so the
    callback still runs exactly once.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug(f"No running event loop; delivering on a timer thread in {delay_s:.3f} s")
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_s, callback)


class TimeFrame(NamedTuple):
    """Original capture window plus the moment the replay began (all ms)."""

    original_start: float
    original_end: float
    replay_start: float


def speed_multiplier(speed: str) -> float:
    """Multiplier for ``speed``; unrecognised values keep the original pace."""
    return SPEED_MULTIPLIERS.get(speed, 1.0)


def compute_delay(speed: str, time_frame: TimeFrame, now: float) -> float:
    """Delay in milliseconds before delivering a replayed body.

    Args:
        speed: Speed policy (fastest, lower, lowest, fast, anything else)
        time_frame: Original capture window and replay start
        now: Current time in milliseconds

    Returns:
        Non-negative delay in milliseconds (0.0 for fastest)
    """
    if speed == "fastest":
        return 0.0
    original_duration = time_frame.original_end - time_frame.original_start
    elapsed = now - time_frame.replay_start
    return max((original_duration - elapsed) * speed_multiplier(speed), 0.0)


class TimingSimulator:
    """Delivers replayed bodies with the original latency, scaled by speed.

    Attributes:
        clock: Returns the current time in ms since epoch
        scheduler: Non-blocking timer primitive taking (seconds, callback)
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.clock = clock or now_ms
        self.scheduler = scheduler or asyncio_scheduler

    def deliver(
        self,
        speed: str,
        body: bytes,
        deliver: Callable[[bytes], None],
        time_frame: TimeFrame,
    ) -> Optional[Any]:
        """Hand ``body`` to ``deliver`` according to ``speed``.

        Args:
            speed: Speed policy
            body: Recorded response body
            deliver: Callback completing the response with the body
            time_frame: Original capture window and replay start

        Returns:
            The scheduled timer handle, or None when delivered synchronously
        """
        if speed == "fastest":
            logger.debug(f"Response instant (fastest), {len(body)} bytes")
            deliver(body)
            return None

        delay = compute_delay(speed, time_frame, self.clock())
        logger.debug(
            f"Response in {delay:.1f} ms (speed={speed}), "
            f"original {time_frame.original_end - time_frame.original_start:.1f} ms"
        )
        return self.scheduler(delay / 1000.0, lambda: deliver(body))
