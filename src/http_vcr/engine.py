"""ReplayEngine: records and replays HTTP traffic inside a host pipeline.

The host calls ``on_request`` for every inbound request and ``on_response``
for every response obtained from the real upstream. Depending on the mode
the engine passes traffic through, captures it into a recordset, or answers
from a recordset with the original latency.

Usage:
    engine = ReplayEngine(config=RecorderConfig(speed="original"))
    engine.set_requests("checkout", [])
    engine.start("checkout")
    ...  # host feeds on_request/on_response
    engine.replay("checkout")
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from http_vcr.config import RecorderConfig
from http_vcr.core.format import (
    Exchange,
    ParsedURL,
    RecordedRequest,
    RecordedResponse,
)
from http_vcr.core.matcher import Matcher, RecordsetMatcher
from http_vcr.core.session import ModeState, SessionManager
from http_vcr.core.store import RecordsetStore, UnknownRecordsetError
from http_vcr.core.timing import Clock, Scheduler, TimeFrame, TimingSimulator, now_ms
from http_vcr.pipeline import Continuation, InboundRequest, ResponseWriter, UpstreamResponse

logger = logging.getLogger(__name__)

_MATCHER_OPERATIONS = ("find_request", "add_request", "get_requests", "set_requests")


class ReplayEngine:
    """Mode state machine orchestrating matching, recording and timed replay.

    Attributes:
        config: Recorder configuration; ``config.speed`` is read per replay
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        store: Optional[RecordsetStore] = None,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        """Initialize the engine in idle mode.

        Args:
            config: Recorder configuration (defaults: speed=fastest)
            store: Backing store for the built-in matcher
            clock: Returns current time in ms since epoch
            scheduler: Non-blocking timer primitive for delayed delivery
        """
        self.config = config or RecorderConfig()
        self._clock = clock or now_ms
        self._session = SessionManager()
        self._builtin_matcher = RecordsetMatcher(store)
        self._external_matcher: Optional[Matcher] = None
        self._timing = TimingSimulator(clock=self._clock, scheduler=scheduler)

        self._record_log = logging.LoggerAdapter(logger, {"mode": "RECORD"})
        self._replay_log = logging.LoggerAdapter(logger, {"mode": "REPLAY"})

        logger.debug(f"ReplayEngine initialized (speed={self.config.speed})")

    # ----- Mode -----

    @property
    def is_recording(self) -> bool:
        return self._session.is_recording

    @property
    def is_replaying(self) -> bool:
        return self._session.is_replaying

    @property
    def current_state(self) -> ModeState:
        return self._session.current_state

    @property
    def current_recordset(self) -> Optional[str]:
        return self._session.current_recordset

    def start(self, recordset: str) -> None:
        """Start recording into ``recordset``.

        The recordset must have been initialised with set_requests() when the
        built-in matcher is in use; otherwise captured exchanges are rejected.
        """
        logger.debug(f"start '{recordset}'")
        self._session.start(recordset)

    def stop(self) -> None:
        """Stop recording and replaying."""
        logger.debug("stop")
        self._session.stop()

    def replay(self, recordset: str) -> None:
        """Replay responses recorded in ``recordset``."""
        logger.debug(f"replay '{recordset}'")
        self._session.replay(recordset)

    # ----- Matcher delegation -----

    @property
    def matcher(self) -> Matcher:
        """The matcher currently in charge: external if registered, else built-in."""
        if self._external_matcher is not None:
            return self._external_matcher
        return self._builtin_matcher

    def register_matcher(self, matcher: Matcher) -> None:
        """Replace the built-in matcher for every operation.

        Args:
            matcher: A Matcher, or any object providing the four operations

        Raises:
            TypeError: If ``matcher`` lacks one of the operations
        """
        missing = [
            name for name in _MATCHER_OPERATIONS if not callable(getattr(matcher, name, None))
        ]
        if missing:
            raise TypeError(f"Matcher is missing operations: {', '.join(missing)}")
        self._external_matcher = matcher
        logger.info(f"External matcher registered: {type(matcher).__name__}")

    def find_request(self, recordset: str, request: RecordedRequest) -> Optional[Exchange]:
        return self.matcher.find_request(recordset, request)

    def add_request(self, recordset: str, exchange: Exchange) -> None:
        self.matcher.add_request(recordset, exchange)

    def get_requests(self, recordset: str) -> list[Exchange]:
        return self.matcher.get_requests(recordset)

    def set_requests(self, recordset: str, exchanges: Iterable[Exchange]) -> None:
        self.matcher.set_requests(recordset, exchanges)

    # ----- Pipeline hooks -----

    def on_request(
        self, request: InboundRequest, response: ResponseWriter, next_: Continuation
    ) -> None:
        """Handle an inbound request.

        Passes through (calls ``next_``) unless replaying. While replaying the
        response is completed from the recordset, or with 404 when nothing
        matches; ``next_`` is not called so the request never reaches a live
        upstream.
        """
        if request.start_time is None:
            request.start_time = self._clock()

        if response.finished or not self._session.is_replaying:
            next_()
            return

        self._replay_log.info(f"{request.method} {request.url}")

        exchange = self._lookup(request)
        if exchange is None:
            logger.debug(f"No matching exchange for {request.method} {request.url}")
            response.write_head(404, "Not Found", [])
            response.end(b"")
            return

        recorded = exchange.response
        response.write_head(recorded.status_code, recorded.status_message, recorded.headers)
        try:
            self._timing.deliver(
                self.config.speed,
                recorded.body,
                response.end,
                TimeFrame(
                    original_start=exchange.start,
                    original_end=exchange.end,
                    replay_start=request.start_time,
                ),
            )
        except Exception as e:
            logger.error(
                f"Timed delivery failed for {request.method} {request.url}: {e}; "
                "sending body immediately",
                exc_info=True,
            )
            if not response.finished:
                response.end(recorded.body)

    def on_response(
        self, request: InboundRequest, upstream: UpstreamResponse, next_: Continuation
    ) -> None:
        """Handle a response from the real upstream.

        Captures the exchange when recording; always calls ``next_`` once.
        A failure to store the exchange is logged and never reaches the
        forward path.
        """
        try:
            if self._session.is_recording and not self._session.is_replaying:
                self._record(request, upstream)
        except Exception as e:
            logger.error(
                f"Recording failed for {request.method} {request.url}: {e}", exc_info=True
            )
        finally:
            next_()

    # ----- Internals -----

    def _resolve_recordset(self, request: InboundRequest) -> Optional[str]:
        if request.recordset is not None:
            return request.recordset
        return self._session.current_recordset

    @staticmethod
    def _to_recorded_request(request: InboundRequest) -> RecordedRequest:
        return RecordedRequest(
            method=request.method,
            url=request.url,
            url_parse=ParsedURL.from_url(request.url),
            headers=request.headers,
            raw_body=request.raw_body,
            body=request.body,
        )

    def _lookup(self, request: InboundRequest) -> Optional[Exchange]:
        recordset = self._resolve_recordset(request)
        if recordset is None:
            logger.error("Replaying without a recordset; nothing can match")
            return None
        try:
            return self.find_request(recordset, self._to_recorded_request(request))
        except Exception as e:
            logger.error(f"Lookup failed on recordset '{recordset}': {e}", exc_info=True)
            return None

    def _record(self, request: InboundRequest, upstream: UpstreamResponse) -> None:
        self._record_log.info(f"{request.method} {request.url}")

        recorded_request = self._to_recorded_request(request)
        if request.raw_body is None:
            self._record_log.warning(f"No body captured for {request.method} {request.url}")

        end = self._clock()
        start = request.start_time if request.start_time is not None else end
        exchange = Exchange(
            request=recorded_request,
            response=RecordedResponse(
                status_code=upstream.status_code,
                status_message=upstream.status_message,
                headers=upstream.headers,
                body=upstream.body,
            ),
            start=min(start, end),
            end=end,
        )

        recordset = self._resolve_recordset(request)
        if recordset is None:
            logger.error(f"Recording without a recordset; dropped {request.method} {request.url}")
            return
        try:
            self.add_request(recordset, exchange)
        except UnknownRecordsetError as e:
            logger.error(f"Exchange not recorded: {e}")


__all__ = ["ReplayEngine"]
