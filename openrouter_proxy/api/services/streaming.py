"""Relay of upstream responses back to the caller.

An upstream response becomes one of two variants sharing status and headers:
BufferedUpstreamResponse (body read fully) or StreamedUpstreamResponse (raw
chunks relayed lazily, in order, exactly once). ``to_response()`` is the
single conversion point to a Starlette response.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx
from fastapi.responses import Response, StreamingResponse

from openrouter_proxy.core.errors import ProxyError

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset({"transfer-encoding", "connection"})
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


def filter_response_headers(headers: httpx.Headers) -> list[tuple[str, str]]:
    """Copy upstream headers minus hop-by-hop ones, keeping duplicates."""
    return [
        (name, value)
        for name, value in headers.multi_items()
        if name.lower() not in HOP_BY_HOP_HEADERS
    ]


def is_event_stream(headers: httpx.Headers) -> bool:
    return EVENT_STREAM_CONTENT_TYPE in headers.get("content-type", "")


def is_completions_endpoint(endpoint: str) -> bool:
    return "completions" in endpoint


def _apply_headers(response: Response, headers: list[tuple[str, str]], skip: frozenset[str]) -> None:
    for name, value in headers:
        if name.lower() not in skip:
            response.headers.append(name, value)


@dataclass(frozen=True, slots=True)
class BufferedUpstreamResponse:
    status: int
    headers: list[tuple[str, str]]
    body: bytes
    # HEAD responses have no body but report the length of the GET body
    keep_content_length: bool = False

    def to_response(self) -> Response:
        response = Response(content=self.body, status_code=self.status)
        if self.keep_content_length and any(
            name.lower() == "content-length" for name, _ in self.headers
        ):
            if "content-length" in response.headers:
                del response.headers["content-length"]
            _apply_headers(response, self.headers, frozenset())
        else:
            # content-length is recomputed from the buffered body
            _apply_headers(response, self.headers, frozenset({"content-length"}))
        return response


@dataclass(frozen=True, slots=True)
class StreamedUpstreamResponse:
    status: int
    headers: list[tuple[str, str]]
    chunks: AsyncIterator[bytes]

    def to_response(self) -> Response:
        response = StreamingResponse(self.chunks, status_code=self.status)
        _apply_headers(response, self.headers, frozenset())
        return response


RelayedResponse = BufferedUpstreamResponse | StreamedUpstreamResponse


async def iter_upstream_chunks(upstream: httpx.Response) -> AsyncIterator[bytes]:
    """Yield raw upstream bytes as received and always close the upstream response.

    A read error is logged and re-raised so the server aborts the truncated
    response; it is never retried. Caller disconnects close the generator,
    which closes the upstream response too.
    """
    relayed = 0
    try:
        async for chunk in upstream.aiter_raw():
            relayed += len(chunk)
            yield chunk
    except httpx.HTTPError as e:
        logger.error(f"Upstream stream failed after {relayed:,} bytes: {e}")
        raise
    finally:
        await upstream.aclose()
        logger.debug(f"Stream closed after {relayed:,} bytes")


async def read_upstream_body(upstream: httpx.Response) -> bytes:
    """Read the full raw upstream body.

    Raises:
        ProxyError: If the body cannot be read
    """
    try:
        return b"".join([chunk async for chunk in upstream.aiter_raw()])
    except httpx.HTTPError as e:
        raise ProxyError(f"Error reading upstream response: {e}") from e
    finally:
        await upstream.aclose()


async def relay_upstream_response(
    upstream: httpx.Response, endpoint: str, method: str = "GET"
) -> RelayedResponse:
    """Pick the streamed or buffered variant for an upstream response."""
    headers = filter_response_headers(upstream.headers)

    if is_event_stream(upstream.headers) and is_completions_endpoint(endpoint):
        return StreamedUpstreamResponse(
            status=upstream.status_code,
            headers=headers,
            chunks=iter_upstream_chunks(upstream),
        )

    body = await read_upstream_body(upstream)
    return BufferedUpstreamResponse(
        status=upstream.status_code,
        headers=headers,
        body=body,
        keep_content_length=method.upper() == "HEAD",
    )
