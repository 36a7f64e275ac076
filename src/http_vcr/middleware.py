"""aiohttp host adapter for the ReplayEngine.

The middleware turns every aiohttp request into an InboundRequest and runs it
through the engine. Passthrough traffic reaches the wrapped handler (the
"upstream"), whose response is fed back for recording. Replayed responses
are completed by the engine, possibly from a timer callback.

Usage:
    engine = ReplayEngine()
    app = web.Application(middlewares=[vcr_middleware(engine)])

    # Or a standalone replay server over a recordset file:
    app = create_replay_app(engine)
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from aiohttp import hdrs, web

from http_vcr.core.format import Headers
from http_vcr.engine import ReplayEngine
from http_vcr.pipeline import InboundRequest, ResponseWriter, UpstreamResponse

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

# Recomputed by aiohttp for the body actually sent
_SKIPPED_HEADERS = {"content-length", "transfer-encoding", "connection", "keep-alive"}


class FutureResponseWriter(ResponseWriter):
    """ResponseWriter completing an asyncio future instead of a socket."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[bytes] = loop.create_future()
        self.status_code = 200
        self.status_message = ""
        self.headers: Headers = []

    @property
    def finished(self) -> bool:
        return self._future.done()

    def write_head(self, status_code: int, status_message: str, headers: Headers) -> None:
        self.status_code = status_code
        self.status_message = status_message
        self.headers = list(headers)

    def end(self, body: bytes = b"") -> None:
        if self._future.done():
            logger.warning("Response already finished; ignoring second end()")
            return
        self._future.set_result(body)

    async def wait(self) -> web.Response:
        """Wait for end() and build the aiohttp response."""
        body = await self._future
        response = web.Response(
            status=self.status_code,
            reason=self.status_message or None,
            body=body,
        )
        for name, value in self.headers:
            if name.lower() in _SKIPPED_HEADERS:
                continue
            response.headers.add(name, value)
        return response


def _decode_body(request: web.Request, raw: Optional[bytes]) -> Optional[Any]:
    if not raw or request.content_type != "application/json":
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.debug(f"Undecodable JSON body on {request.method} {request.path_qs}")
        return None


def _has_body(request: web.Request) -> bool:
    if request.body_exists:
        return True
    # An explicit zero-length body still counts as a body
    return hdrs.CONTENT_LENGTH in request.headers or hdrs.TRANSFER_ENCODING in request.headers


async def to_inbound_request(request: web.Request) -> InboundRequest:
    """Build the engine's view of an aiohttp request."""
    raw = await request.read() if _has_body(request) else None
    return InboundRequest(
        method=request.method,
        url=request.path_qs,
        headers=request.headers,
        raw_body=raw,
        body=_decode_body(request, raw),
    )


def _to_upstream_response(response: web.StreamResponse) -> Optional[UpstreamResponse]:
    """Capture a handler response, or None when its body was streamed."""
    body = getattr(response, "body", None)
    if not isinstance(body, (bytes, bytearray)):
        return None
    return UpstreamResponse(
        status_code=response.status,
        status_message=response.reason,
        headers=response.headers,
        body=bytes(body),
    )


def _exception_to_upstream_response(exc: web.HTTPException) -> UpstreamResponse:
    return UpstreamResponse(
        status_code=exc.status,
        status_message=exc.reason,
        headers=exc.headers,
        body=exc.text.encode("utf-8") if exc.text else b"",
    )


def vcr_middleware(engine: ReplayEngine) -> Callable[..., Awaitable[web.StreamResponse]]:
    """Create an aiohttp middleware routing traffic through ``engine``.

    Args:
        engine: The ReplayEngine deciding passthrough, record or replay

    Returns:
        aiohttp middleware
    """

    def record(inbound: InboundRequest, upstream: Optional[UpstreamResponse]) -> None:
        if upstream is None:
            if engine.is_recording and not engine.is_replaying:
                logger.warning(
                    "Streamed response body cannot be captured; "
                    f"{inbound.method} {inbound.url} not recorded"
                )
            return
        try:
            engine.on_response(inbound, upstream, lambda: None)
        except Exception as e:
            logger.error(f"Recording failed for {inbound.method} {inbound.url}: {e}", exc_info=True)

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        inbound = await to_inbound_request(request)
        writer = FutureResponseWriter()
        passed: list[bool] = []

        engine.on_request(inbound, writer, lambda: passed.append(True))

        if not passed:
            return await writer.wait()

        try:
            response = await handler(request)
        except web.HTTPException as exc:
            record(inbound, _exception_to_upstream_response(exc))
            raise

        record(inbound, _to_upstream_response(response))
        return response

    return middleware


async def _not_recorded(request: web.Request) -> web.Response:
    return web.Response(status=404)


def create_replay_app(engine: ReplayEngine) -> web.Application:
    """Build an application answering every route from ``engine``.

    Requests that reach the fallback route (engine not replaying) get 404,
    so unmatched traffic never hits a live upstream.
    """
    app = web.Application(middlewares=[vcr_middleware(engine)])
    app.router.add_route("*", "/{tail:.*}", _not_recorded)
    return app


async def serve(engine: ReplayEngine, host: str = "127.0.0.1", port: int = 8080) -> None:
    """Run a replay server until cancelled.

    Args:
        engine: Engine already set to replay a loaded recordset
        host: Bind address
        port: Bind port
    """
    runner = web.AppRunner(create_replay_app(engine))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Replay server listening on http://{host}:{port}")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


__all__ = [
    "FutureResponseWriter",
    "create_replay_app",
    "serve",
    "to_inbound_request",
    "vcr_middleware",
]
