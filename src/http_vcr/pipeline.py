"""Host pipeline contract: the objects a host hands to the replay engine."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, field_validator

from http_vcr.core.format import Headers, normalize_headers

logger = logging.getLogger(__name__)


Continuation = Callable[[], None]


class InboundRequest(BaseModel):
    """An already-parsed request entering the host pipeline.

    ``start_time`` is stamped by the host before the request hook runs; the
    engine stamps it itself when the host did not.
    """

    method: str
    url: str
    headers: Headers = Field(default_factory=list)
    raw_body: Optional[bytes] = None
    body: Optional[Any] = None
    recordset: Optional[str] = Field(
        None, description="Recordset this request belongs to (engine target if None)"
    )
    start_time: Optional[float] = Field(
        None, description="When the request entered the pipeline (ms since epoch)"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> Any:
        return normalize_headers(v)


class UpstreamResponse(BaseModel):
    """A response obtained from the real upstream."""

    status_code: int
    status_message: str = ""
    headers: Headers = Field(default_factory=list)
    body: bytes = b""

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> Any:
        return normalize_headers(v)


class ResponseWriter(ABC):
    """Abstract outgoing response the engine may complete during replay."""

    @property
    @abstractmethod
    def finished(self) -> bool:
        """Return whether the response has already been finalized."""
        pass

    @abstractmethod
    def write_head(self, status_code: int, status_message: str, headers: Headers) -> None:
        """Write the status line and headers.

        Args:
            status_code: HTTP status code
            status_message: Reason phrase
            headers: Ordered header pairs
        """
        pass

    @abstractmethod
    def end(self, body: bytes = b"") -> None:
        """Terminate the response with ``body``.

        Called at most once per request. Implementations may be invoked from
        a timer callback.
        """
        pass
