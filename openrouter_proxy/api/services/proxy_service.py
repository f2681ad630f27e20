"""Proxy service: the request transformation and relay pipeline.

inbound request -> credential extraction -> body transform (routing table
lookup when applicable) -> upstream forward -> response relay.

Kept independent of FastAPI routing so it can be unit tested with a plain
InboundRequest.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import Response
from starlette.datastructures import Headers

from openrouter_proxy.api.services.streaming import (
    RelayedResponse,
    StreamedUpstreamResponse,
    relay_upstream_response,
)
from openrouter_proxy.conversion.body_transformer import RouteContext, RoutingMode, transform_body
from openrouter_proxy.core.client import UpstreamClient
from openrouter_proxy.core.config import Config
from openrouter_proxy.core.credentials import extract_bearer_token
from openrouter_proxy.core.logging import correlation_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InboundRequest:
    """Everything the pipeline needs from one inbound HTTP request."""

    method: str
    headers: Headers
    body: bytes
    route: RouteContext
    query: str = ""

    @classmethod
    async def from_request(
        cls,
        request: Request,
        endpoint: str,
        mode: RoutingMode,
        provider: str | None = None,
    ) -> InboundRequest:
        return cls(
            method=request.method,
            headers=request.headers,
            body=await request.body(),
            route=RouteContext(endpoint=endpoint, mode=mode, provider=provider),
            query=request.url.query,
        )


class ProxyService:
    """Runs the proxy pipeline against the shared config and upstream client."""

    def __init__(self, config: Config, client: UpstreamClient) -> None:
        self.config = config
        self.client = client

    async def relay(self, inbound: InboundRequest) -> RelayedResponse:
        token = extract_bearer_token(inbound.headers)

        body = transform_body(inbound.body, inbound.route, self.config.routing_table)
        if body is not inbound.body:
            logger.debug(f"Rewrote request body for provider routing ({len(body):,} bytes)")

        upstream = await self.client.forward(
            inbound.route.endpoint,
            inbound.method,
            inbound.headers.items(),
            body,
            token,
            inbound.query,
        )
        return await relay_upstream_response(upstream, inbound.route.endpoint, inbound.method)

    async def proxy_request(self, inbound: InboundRequest) -> Response:
        request_id = str(uuid.uuid4())
        with correlation_context(request_id):
            relayed = await self.relay(inbound)

            route = inbound.route
            delivery = "streamed" if isinstance(relayed, StreamedUpstreamResponse) else "buffered"
            logger.info(
                f"{inbound.method} {route.endpoint} | Mode: {route.mode.value} | "
                f"Status: {relayed.status} | {delivery}"
            )
            return relayed.to_response()
