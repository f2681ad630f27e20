"""Request body rewriting for provider routing.

Parses the inbound JSON body, injects ``provider.order`` and, in explicit
provider mode, qualifies ``model`` as ``<provider>/<model>``. Every field that
is not explicitly touched survives re-serialization with the same value.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from openrouter_proxy.core.errors import ParseError
from openrouter_proxy.core.routing import RoutingTable

logger = logging.getLogger(__name__)

REWRITABLE_ENDPOINTS = ("chat/completions", "embeddings")


class RoutingMode(str, Enum):
    EXPLICIT = "explicit"  # Provider supplied in the URL path
    TABLE = "table"  # Providers derived from the routing table
    PASSTHROUGH = "passthrough"  # Body forwarded untouched


def is_rewritable_endpoint(endpoint: str) -> bool:
    """Only chat/completions- and embeddings-shaped paths carry a model to route."""
    path = endpoint.strip("/")
    return any(path == name or path.endswith("/" + name) for name in REWRITABLE_ENDPOINTS)


@dataclass(frozen=True, slots=True)
class RouteContext:
    """How the body of one request should be rewritten.

    Attributes:
        endpoint: Upstream path relative to the base URL (e.g. "chat/completions")
        mode: Which routing source applies
        provider: The path-supplied provider (explicit mode only)
    """

    endpoint: str
    mode: RoutingMode
    provider: str | None = None

    def __post_init__(self) -> None:
        if self.mode is RoutingMode.EXPLICIT and not self.provider:
            raise ValueError("Explicit routing requires a provider")

    @property
    def rewrite_enabled(self) -> bool:
        return self.mode is not RoutingMode.PASSTHROUGH and is_rewritable_endpoint(self.endpoint)


# --- provider.order merge decision table ---


class ProviderSlot(str, Enum):
    """Runtime shape of the existing ``provider`` value."""

    OBJECT = "object"
    OTHER = "other"
    ABSENT = "absent"


def classify_provider_slot(body: dict[str, Any]) -> ProviderSlot:
    if "provider" not in body:
        return ProviderSlot.ABSENT
    if isinstance(body["provider"], dict):
        return ProviderSlot.OBJECT
    return ProviderSlot.OTHER


def _merge_order(body: dict[str, Any], order: list[str]) -> None:
    body["provider"]["order"] = order


def _replace_provider(body: dict[str, Any], order: list[str]) -> None:
    body["provider"] = {"order": order}


PROVIDER_ORDER_ACTIONS: dict[ProviderSlot, Callable[[dict[str, Any], list[str]], None]] = {
    ProviderSlot.OBJECT: _merge_order,
    ProviderSlot.OTHER: _replace_provider,
    ProviderSlot.ABSENT: _replace_provider,
}


def set_provider_order(body: dict[str, Any], providers: Sequence[str]) -> None:
    """Set ``body["provider"]["order"]``, keeping sibling keys of an existing object."""
    slot = classify_provider_slot(body)
    PROVIDER_ORDER_ACTIONS[slot](body, list(providers))


def qualify_model(body: dict[str, Any], provider: str) -> None:
    """Rewrite ``model`` to ``<provider>/<model>`` unless already qualified."""
    model = body.get("model")
    if isinstance(model, str) and "/" not in model:
        body["model"] = f"{provider}/{model}"


# --- parsing and serialization ---


def parse_json_object(raw_body: bytes) -> dict[str, Any]:
    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON request body: {e}") from e
    if not isinstance(body, dict):
        raise ParseError("Invalid JSON request body: expected a JSON object")
    return body


def serialize_json_object(body: dict[str, Any]) -> bytes:
    try:
        return json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ParseError(f"Unable to serialize the rewritten request body: {e}") from e


def transform_body(raw_body: bytes, context: RouteContext, routing_table: RoutingTable) -> bytes:
    """Rewrite the request body for upstream provider routing.

    Args:
        raw_body: Inbound body bytes
        context: Endpoint and routing mode of the request
        routing_table: Rules used in table mode

    Returns:
        The body to forward; the original bytes when nothing was rewritten

    Raises:
        ParseError: If rewriting is enabled and the body is not a JSON object
    """
    if not context.rewrite_enabled:
        return raw_body

    body = parse_json_object(raw_body)

    if context.mode is RoutingMode.EXPLICIT:
        provider = context.provider
        if not provider:
            raise ValueError("Explicit routing requires a provider")
        qualify_model(body, provider)
        set_provider_order(body, [provider])
        logger.debug(f"Routing model {body.get('model')!r} to provider {provider!r}")
        return serialize_json_object(body)

    model = body.get("model")
    providers = routing_table.resolve(model) if isinstance(model, str) else None
    if providers is None:
        return raw_body

    set_provider_order(body, providers)
    logger.debug(f"Model {model!r} matched provider order {list(providers)}")
    return serialize_json_object(body)
