"""Builders and fakes shared by the HTTP VCR tests."""

from typing import Any, Callable, List, Optional, Tuple

from http_vcr.core.format import Exchange, RecordedRequest, RecordedResponse
from http_vcr.pipeline import InboundRequest, ResponseWriter


# ===== Builders =====


def make_exchange(
    method: str = "GET",
    url: str = "/a",
    raw_body: Optional[bytes] = None,
    status_code: int = 200,
    status_message: str = "OK",
    headers: Optional[List[Tuple[str, str]]] = None,
    body: bytes = b"ok",
    start: float = 0.0,
    end: float = 1000.0,
) -> Exchange:
    """Helper to create an exchange with the given request key and response."""
    return Exchange(
        request=RecordedRequest(method=method, url=url, raw_body=raw_body),
        response=RecordedResponse(
            status_code=status_code,
            status_message=status_message,
            headers=headers or [("Content-Type", "text/plain")],
            body=body,
        ),
        start=start,
        end=end,
    )


def make_request(
    method: str = "GET",
    url: str = "/a",
    raw_body: Optional[bytes] = None,
    recordset: Optional[str] = None,
    start_time: Optional[float] = None,
) -> InboundRequest:
    return InboundRequest(
        method=method,
        url=url,
        headers=[("Host", "example.test")],
        raw_body=raw_body,
        recordset=recordset,
        start_time=start_time,
    )


# ===== Fakes =====


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: float = 10_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeScheduler:
    """Captures scheduled callbacks instead of running a timer."""

    def __init__(self) -> None:
        self.scheduled: List[Tuple[float, Callable[[], None]]] = []

    def __call__(self, delay_s: float, callback: Callable[[], None]) -> Any:
        self.scheduled.append((delay_s, callback))
        return len(self.scheduled)

    @property
    def delays_ms(self) -> List[float]:
        return [delay_s * 1000.0 for delay_s, _ in self.scheduled]

    def fire_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for _, callback in pending:
            callback()


class RecordingWriter(ResponseWriter):
    """ResponseWriter capturing every call for assertions."""

    def __init__(self, finished: bool = False) -> None:
        self._finished = finished
        self.head: Optional[Tuple[int, str, List[Tuple[str, str]]]] = None
        self.body: Optional[bytes] = None
        self.end_calls = 0

    @property
    def finished(self) -> bool:
        return self._finished

    def write_head(self, status_code, status_message, headers) -> None:
        self.head = (status_code, status_message, list(headers))

    def end(self, body: bytes = b"") -> None:
        self.end_calls += 1
        self.body = body
        self._finished = True

    @property
    def touched(self) -> bool:
        return self.head is not None or self.end_calls > 0


class Continuation:
    """Counts continuation calls."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


