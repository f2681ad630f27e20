from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from openrouter_proxy import __version__
from openrouter_proxy.api.services.proxy_service import InboundRequest, ProxyService
from openrouter_proxy.conversion.body_transformer import RoutingMode

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


# === Routing-table endpoints ===


@router.api_route("/api/v1/chat/completions", methods=PROXY_METHODS)
async def proxy_chat_completions(
    request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    inbound = await InboundRequest.from_request(request, "chat/completions", RoutingMode.TABLE)
    return await service.proxy_request(inbound)


@router.api_route("/api/v1/embeddings", methods=PROXY_METHODS)
async def proxy_embeddings(
    request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    inbound = await InboundRequest.from_request(request, "embeddings", RoutingMode.TABLE)
    return await service.proxy_request(inbound)


@router.api_route("/api/v1/models", methods=PROXY_METHODS)
async def proxy_models(
    request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    inbound = await InboundRequest.from_request(request, "models", RoutingMode.TABLE)
    return await service.proxy_request(inbound)


# === Path-routed endpoints ===
# Standard upstream paths are registered before the provider route so that
# "/v1/chat/completions" never reads "chat" as a provider.


@router.api_route("/v1/chat/completions", methods=PROXY_METHODS)
async def passthrough_chat_completions(
    request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    inbound = await InboundRequest.from_request(
        request, "chat/completions", RoutingMode.PASSTHROUGH
    )
    return await service.proxy_request(inbound)


@router.api_route("/v1/embeddings", methods=PROXY_METHODS)
async def passthrough_embeddings(
    request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    inbound = await InboundRequest.from_request(request, "embeddings", RoutingMode.PASSTHROUGH)
    return await service.proxy_request(inbound)



@router.api_route("/v1/{provider}/{endpoint:path}", methods=PROXY_METHODS)
async def proxy_with_provider(
    provider: str,
    endpoint: str,
    request: Request,
    service: ProxyService = Depends(get_proxy_service),
) -> Response:
    """Forward with an explicit provider taken from the first path segment."""
    inbound = await InboundRequest.from_request(
        request, endpoint, RoutingMode.EXPLICIT, provider=provider
    )
    return await service.proxy_request(inbound)


@router.api_route("/v1/{endpoint}", methods=PROXY_METHODS)
async def proxy_passthrough(
    endpoint: str, request: Request, service: ProxyService = Depends(get_proxy_service)
) -> Response:
    """Forward single-segment paths without touching the body."""
    inbound = await InboundRequest.from_request(request, endpoint, RoutingMode.PASSTHROUGH)
    return await service.proxy_request(inbound)


# === Health ===


@router.get("/")
@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Health check endpoint"""
    config = request.app.state.config
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "upstream": config.base_url,
        "routing_rules": len(config.routing_table),
    }
