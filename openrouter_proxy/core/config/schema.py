"""Declarative schema for environment variable configuration.

This module provides a single source of truth for all environment variables,
including automatic type coercion, validation, and documentation generation.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EnvVarSpec:
    """Specification for a single environment variable.

    Attributes:
        name: Environment variable name (e.g., "PORT", "LOG_LEVEL")
        default: Default value if env var not set
        type_hint: Type for validation (int, str, float, bool)
        description: Human-readable description for docs
        validator: Optional custom validation function
    """

    name: str
    default: Any
    type_hint: type
    description: str
    validator: Callable[[Any], bool] | None = None


class ConfigSchema:
    """Registry of all configuration environment variables."""

    # === Server Settings ===

    HOST = EnvVarSpec(
        name="HOST",
        default="0.0.0.0",
        type_hint=str,
        description="Server host address to bind to",
    )

    PORT = EnvVarSpec(
        name="PORT",
        default=3000,
        type_hint=int,
        description="Server port number",
        validator=lambda x: 1 <= x <= 65535,
    )

    LOG_LEVEL = EnvVarSpec(
        name="LOG_LEVEL",
        default="INFO",
        type_hint=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validator=lambda x: bool(x.split()) and x.split()[0].upper() in LOG_LEVELS,
    )

    CORS_ENABLED = EnvVarSpec(
        name="CORS_ENABLED",
        default=True,
        type_hint=bool,
        description="Allow cross-origin requests from any origin",
    )

    # === TLS Settings ===

    HTTPS = EnvVarSpec(
        name="HTTPS",
        default=False,
        type_hint=bool,
        description="Serve over HTTPS (requires CERT_PATH and KEY_PATH)",
    )

    CERT_PATH = EnvVarSpec(
        name="CERT_PATH",
        default=None,
        type_hint=str,
        description="Path to the PEM certificate used when HTTPS is enabled",
    )

    KEY_PATH = EnvVarSpec(
        name="KEY_PATH",
        default=None,
        type_hint=str,
        description="Path to the PEM private key used when HTTPS is enabled",
    )

    # === Upstream Settings ===

    OPENROUTER_BASE_URL = EnvVarSpec(
        name="OPENROUTER_BASE_URL",
        default=DEFAULT_OPENROUTER_BASE_URL,
        type_hint=str,
        description="Base URL requests are forwarded to",
        validator=lambda x: x.startswith(("http://", "https://")),
    )

    MODEL_PROVIDER_MAPPING = EnvVarSpec(
        name="MODEL_PROVIDER_MAPPING",
        default="",
        type_hint=str,
        description="Routing rules separated by ';' (e.g. 'gpt-*=openai,azure;*claude*=anthropic')",
    )

    UPSTREAM_CONNECT_TIMEOUT_SECONDS = EnvVarSpec(
        name="UPSTREAM_CONNECT_TIMEOUT_SECONDS",
        default=30.0,
        type_hint=float,
        description="Connect timeout for upstream requests",
        validator=lambda x: x > 0,
    )

    UPSTREAM_READ_TIMEOUT_SECONDS = EnvVarSpec(
        name="UPSTREAM_READ_TIMEOUT_SECONDS",
        default=None,
        type_hint=float,
        description="Read timeout for upstream responses and stream chunks (None = unlimited)",
        validator=lambda x: x is None or x > 0,
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Return every EnvVarSpec declared on the schema, keyed by name."""
        return {
            value.name: value for value in vars(cls).values() if isinstance(value, EnvVarSpec)
        }
