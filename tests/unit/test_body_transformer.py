"""Tests for request body rewriting."""

import json

import pytest

from openrouter_proxy.conversion.body_transformer import (
    ProviderSlot,
    RouteContext,
    RoutingMode,
    classify_provider_slot,
    is_rewritable_endpoint,
    set_provider_order,
    transform_body,
)
from openrouter_proxy.core.errors import ErrorType, ParseError


def _explicit(provider: str = "openai", endpoint: str = "chat/completions") -> RouteContext:
    return RouteContext(endpoint=endpoint, mode=RoutingMode.EXPLICIT, provider=provider)


def _table(endpoint: str = "chat/completions") -> RouteContext:
    return RouteContext(endpoint=endpoint, mode=RoutingMode.TABLE)


def _encode(body) -> bytes:
    return json.dumps(body).encode()


@pytest.mark.unit
class TestRouteContext:
    @pytest.mark.parametrize(
        "endpoint",
        ["chat/completions", "/chat/completions", "embeddings", "openai/chat/completions"],
    )
    def test_rewritable_endpoints(self, endpoint):
        assert is_rewritable_endpoint(endpoint)

    @pytest.mark.parametrize("endpoint", ["models", "completions", "generation", "mychat/completions"])
    def test_other_endpoints_are_not_rewritable(self, endpoint):
        assert not is_rewritable_endpoint(endpoint)

    def test_passthrough_never_rewrites(self):
        ctx = RouteContext(endpoint="chat/completions", mode=RoutingMode.PASSTHROUGH)
        assert ctx.rewrite_enabled is False

    def test_explicit_mode_requires_provider(self):
        with pytest.raises(ValueError):
            RouteContext(endpoint="chat/completions", mode=RoutingMode.EXPLICIT)


@pytest.mark.unit
class TestProviderOrderDecisionTable:
    @pytest.mark.parametrize(
        ("body", "slot"),
        [
            ({"provider": {"allow_fallbacks": False}}, ProviderSlot.OBJECT),
            ({"provider": "openai"}, ProviderSlot.OTHER),
            ({"provider": None}, ProviderSlot.OTHER),
            ({"provider": ["openai"]}, ProviderSlot.OTHER),
            ({"model": "gpt-4"}, ProviderSlot.ABSENT),
        ],
    )
    def test_classifies_provider_shape(self, body, slot):
        assert classify_provider_slot(body) is slot

    def test_merges_into_existing_object(self):
        body = {"provider": {"allow_fallbacks": False, "order": ["old"]}}
        set_provider_order(body, ["openai", "azure"])
        assert body == {"provider": {"allow_fallbacks": False, "order": ["openai", "azure"]}}

    @pytest.mark.parametrize("existing", ["openai", None, 42, ["x"]])
    def test_replaces_non_object(self, existing):
        body = {"provider": existing}
        set_provider_order(body, ["openai"])
        assert body == {"provider": {"order": ["openai"]}}

    def test_adds_when_absent(self):
        body = {"model": "gpt-4"}
        set_provider_order(body, ("openai",))
        assert body == {"model": "gpt-4", "provider": {"order": ["openai"]}}


@pytest.mark.unit
class TestExplicitProviderMode:
    def test_qualifies_model_and_sets_order(self, routing_table):
        raw = _encode({"model": "gpt-4", "messages": []})
        out = json.loads(transform_body(raw, _explicit("openai"), routing_table))
        assert out["model"] == "openai/gpt-4"
        assert out["provider"]["order"] == ["openai"]
        assert out["messages"] == []

    def test_keeps_already_qualified_model(self, routing_table):
        raw = _encode({"model": "anthropic/claude-3.5-sonnet"})
        out = json.loads(transform_body(raw, _explicit("amazon-bedrock"), routing_table))
        assert out["model"] == "anthropic/claude-3.5-sonnet"
        assert out["provider"] == {"order": ["amazon-bedrock"]}

    def test_sets_order_without_model_field(self, routing_table):
        out = json.loads(transform_body(b'{"input": "hi"}', _explicit("nomic", "embeddings"), routing_table))
        assert out == {"input": "hi", "provider": {"order": ["nomic"]}}

    def test_ignores_routing_table(self, routing_table):
        raw = _encode({"model": "gpt-4"})
        out = json.loads(transform_body(raw, _explicit("together"), routing_table))
        assert out["provider"]["order"] == ["together"]


@pytest.mark.unit
class TestTableMode:
    def test_sets_order_and_leaves_model(self, routing_table):
        raw = _encode({"model": "gpt-4", "messages": []})
        out = json.loads(transform_body(raw, _table(), routing_table))
        assert out["model"] == "gpt-4"
        assert out["provider"]["order"] == ["openai", "azure"]

    def test_merges_with_existing_provider_preferences(self, routing_table):
        raw = _encode({"model": "gpt-4", "provider": {"data_collection": "deny"}})
        out = json.loads(transform_body(raw, _table(), routing_table))
        assert out["provider"] == {"data_collection": "deny", "order": ["openai", "azure"]}

    def test_no_match_returns_original_bytes(self, routing_table):
        raw = b'{"model": "mistral-large", "provider": "keep-me"}'
        assert transform_body(raw, _table(), routing_table) is raw

    def test_non_string_model_is_left_alone(self, routing_table):
        raw = b'{"model": 7}'
        assert transform_body(raw, _table(), routing_table) is raw

    def test_embeddings_endpoint(self, routing_table):
        raw = _encode({"model": "nomic-embed", "input": ["a", "b"]})
        out = json.loads(transform_body(raw, _table("embeddings"), routing_table))
        assert out["provider"]["order"] == ["nomic"]


@pytest.mark.unit
class TestFieldPreservation:
    def test_unknown_fields_survive(self, routing_table):
        body = {
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "héllo ✓", "name": None}],
            "temperature": 0.7,
            "top_p": 1.0,
            "seed": 12345678901234567890,
            "stream": True,
            "tools": [{"type": "function", "function": {"name": "f", "parameters": {}}}],
            "response_format": {"type": "json_object"},
            "x-custom": {"nested": [1, 2.5, "three", False]},
        }
        out = json.loads(transform_body(_encode(body), _table(), routing_table))
        out.pop("provider")
        assert out == body

    def test_non_ascii_is_kept_as_utf8(self, routing_table):
        raw = _encode({"model": "gpt-4", "messages": [{"content": "日本語"}]})
        assert "日本語".encode() in transform_body(raw, _table(), routing_table)

    def test_transform_is_idempotent_on_provider_order(self, routing_table):
        raw = _encode({"model": "gpt-4", "provider": {"order": ["stale"]}})
        once = transform_body(raw, _table(), routing_table)
        twice = transform_body(once, _table(), routing_table)
        assert json.loads(once)["provider"]["order"] == json.loads(twice)["provider"]["order"]
        assert json.loads(twice)["provider"]["order"] == ["openai", "azure"]

    def test_explicit_mode_idempotent(self, routing_table):
        once = transform_body(_encode({"model": "gpt-4"}), _explicit("openai"), routing_table)
        twice = transform_body(once, _explicit("openai"), routing_table)
        assert json.loads(once) == json.loads(twice)


@pytest.mark.unit
class TestUntouchedBodies:
    def test_disabled_endpoint_returns_raw_bytes_unparsed(self, routing_table):
        raw = b"not json at all"
        assert transform_body(raw, _table("models"), routing_table) is raw
        assert transform_body(raw, _explicit("openai", "models"), routing_table) is raw

    def test_passthrough_returns_raw_bytes(self, routing_table):
        raw = b"{broken"
        ctx = RouteContext(endpoint="chat/completions", mode=RoutingMode.PASSTHROUGH)
        assert transform_body(raw, ctx, routing_table) is raw


@pytest.mark.unit
class TestParseFailures:
    @pytest.mark.parametrize("raw", [b"", b"{", b"not json", b"\xff\xfe\x00", b'{"model": "gpt-4",}'])
    def test_invalid_json(self, raw, routing_table):
        with pytest.raises(ParseError) as exc_info:
            transform_body(raw, _table(), routing_table)
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_type is ErrorType.PARSE_ERROR

    @pytest.mark.parametrize("raw", [b"[]", b'"gpt-4"', b"42", b"null"])
    def test_non_object_json(self, raw, routing_table):
        with pytest.raises(ParseError):
            transform_body(raw, _explicit("openai"), routing_table)


@pytest.mark.unit
def test_explicit_mode_without_provider_is_refused(routing_table):
    ctx = _explicit("openai")
    object.__setattr__(ctx, "provider", None)
    with pytest.raises(ValueError, match="requires a provider"):
        transform_body(b'{"model": "gpt-4"}', ctx, routing_table)
