"""Upstream HTTP client for forwarding proxied requests.

Builds the outbound request (method, sanitized headers, transformed body,
re-issued bearer token) and sends it through a shared, pooled
httpx.AsyncClient. Responses are opened in streaming mode so the relay can
decide whether to buffer or stream the body.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from openrouter_proxy.core.config import Config
from openrouter_proxy.core.errors import UpstreamRequestError

logger = logging.getLogger(__name__)

# Inbound headers never copied onto the upstream request
EXCLUDED_REQUEST_HEADERS = frozenset(
    {"host", "authorization", "content-length", "transfer-encoding", "connection"}
)

# Headers httpx adds on its own; only forwarded when the caller sent them
CLIENT_DEFAULT_HEADERS = ("accept", "accept-encoding", "user-agent")


def build_timeout(config: Config) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.connect_timeout,
        read=config.read_timeout,
        write=config.read_timeout,
        pool=config.connect_timeout,
    )


def filter_request_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Drop headers that must not cross to the upstream leg."""
    return [(name, value) for name, value in headers if name.lower() not in EXCLUDED_REQUEST_HEADERS]


class UpstreamClient:
    """Forwards requests to the configured upstream base URL."""

    def __init__(self, base_url: str, client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client

    @classmethod
    def from_config(cls, config: Config) -> UpstreamClient:
        return cls(config.base_url, httpx.AsyncClient(timeout=build_timeout(config)))

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def build_request(
        self,
        path: str,
        method: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
        token: str,
        query: str = "",
    ) -> httpx.Request:
        outbound_headers = filter_request_headers(headers)
        outbound_headers.append(("Authorization", f"Bearer {token}"))

        url = self.build_url(path)
        if query:
            url = f"{url}?{query}"

        request = self.client.build_request(
            method,
            url,
            headers=outbound_headers,
            content=body or None,
        )

        inbound_names = {name.lower() for name, _ in outbound_headers}
        for name in CLIENT_DEFAULT_HEADERS:
            if name not in inbound_names:
                request.headers.pop(name, None)
        return request

    async def forward(
        self,
        path: str,
        method: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
        token: str,
        query: str = "",
    ) -> httpx.Response:
        """Send the request upstream and return the response with an unread body.

        The caller owns the returned response and must close it.

        Raises:
            UpstreamRequestError: On connection, timeout or protocol failure
        """
        request = self.build_request(path, method, headers, body, token, query)
        logger.debug(f"Forwarding {method} request to: {request.url}")

        try:
            return await self.client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamRequestError(f"Upstream request timed out: {e}", cause=e) from e
        except httpx.HTTPError as e:
            raise UpstreamRequestError(f"Upstream request failed: {e}", cause=e) from e

    async def aclose(self) -> None:
        await self.client.aclose()
