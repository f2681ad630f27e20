"""Model-name routing table.

Maps glob-like model patterns to an ordered list of upstream providers.
Supported pattern shapes (the wildcard may only sit at either end):

- ``*X*`` matches any model containing ``X``
- ``*X``  matches any model ending with ``X``
- ``X*``  matches any model starting with ``X``
- ``X``   matches the exact model name

Matching is case-sensitive and never uses regular expressions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from openrouter_proxy.core.errors import ConfigError

WILDCARD = "*"
RULE_SEPARATOR = ";"


def model_matches_pattern(model: str, pattern: str) -> bool:
    """Check whether a model name matches a routing pattern."""
    if len(pattern) >= 2 and pattern.startswith(WILDCARD) and pattern.endswith(WILDCARD):
        return pattern[1:-1] in model
    if pattern.startswith(WILDCARD):
        return model.endswith(pattern[1:])
    if pattern.endswith(WILDCARD):
        return model.startswith(pattern[:-1])
    return model == pattern


def _validate_pattern(pattern: str, raw: str) -> None:
    if not pattern:
        raise ConfigError("model_provider_mapping", raw, "Pattern must not be empty")
    literal = pattern.strip(WILDCARD)
    if not literal:
        raise ConfigError(
            "model_provider_mapping", raw, "Pattern must contain text besides wildcards"
        )
    leading = len(pattern) - len(pattern.lstrip(WILDCARD))
    trailing = len(pattern) - len(pattern.rstrip(WILDCARD))
    if WILDCARD in literal or leading > 1 or trailing > 1:
        raise ConfigError(
            "model_provider_mapping",
            raw,
            "Wildcards are only allowed at the start and/or end of a pattern",
        )


@dataclass(frozen=True, slots=True)
class RoutingRule:
    """A single ``pattern=provider1,provider2`` rule."""

    pattern: str
    providers: tuple[str, ...]

    def matches(self, model: str) -> bool:
        return model_matches_pattern(model, self.pattern)

    def __str__(self) -> str:
        return f"{self.pattern}={','.join(self.providers)}"


def parse_routing_rule(raw: str) -> RoutingRule:
    """Parse a ``pattern=provider1,provider2`` rule string.

    Args:
        raw: Rule text as supplied on the command line or in the environment

    Returns:
        The parsed RoutingRule

    Raises:
        ConfigError: If the rule is malformed or names no provider
    """
    parts = raw.split("=")
    if len(parts) != 2:
        raise ConfigError(
            "model_provider_mapping",
            raw,
            "Expected format: pattern=provider1,provider2",
        )

    pattern = parts[0].strip()
    _validate_pattern(pattern, raw)

    providers = tuple(p.strip() for p in parts[1].split(",") if p.strip())
    if not providers:
        raise ConfigError("model_provider_mapping", raw, "At least one provider is required")

    return RoutingRule(pattern=pattern, providers=providers)


@dataclass(frozen=True, slots=True)
class RoutingTable:
    """Ordered, immutable collection of routing rules. First match wins."""

    rules: tuple[RoutingRule, ...] = ()

    @classmethod
    def from_strings(cls, raw_rules: Iterable[str]) -> RoutingTable:
        return cls(rules=tuple(parse_routing_rule(raw) for raw in raw_rules))

    @classmethod
    def from_env_value(cls, value: str | None) -> RoutingTable:
        """Build a table from the ``;``-separated environment variable form."""
        if not value:
            return cls()
        return cls.from_strings(
            chunk for chunk in (c.strip() for c in value.split(RULE_SEPARATOR)) if chunk
        )

    def resolve(self, model: str) -> tuple[str, ...] | None:
        """Return the providers of the first rule matching ``model``, if any."""
        for rule in self.rules:
            if rule.matches(model):
                return rule.providers
        return None

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)
