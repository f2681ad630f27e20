"""Immutable process-wide configuration for OpenRouter Proxy.

Configuration is loaded once at startup (environment variables, then CLI
overrides) into a frozen dataclass and shared read-only by every request.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from openrouter_proxy.core.config.schema import ConfigSchema
from openrouter_proxy.core.config.validation import ConfigError, load_env_var
from openrouter_proxy.core.errors import IoError, TlsError
from openrouter_proxy.core.routing import RoutingTable


@dataclass(frozen=True, slots=True)
class Config:
    """Configuration value with direct access to all settings."""

    host: str = ConfigSchema.HOST.default
    port: int = ConfigSchema.PORT.default
    log_level: str = ConfigSchema.LOG_LEVEL.default
    base_url: str = ConfigSchema.OPENROUTER_BASE_URL.default
    routing_table: RoutingTable = field(default_factory=RoutingTable)
    https: bool = ConfigSchema.HTTPS.default
    cert_path: str | None = None
    key_path: str | None = None
    connect_timeout: float = ConfigSchema.UPSTREAM_CONNECT_TIMEOUT_SECONDS.default
    read_timeout: float | None = None
    cors_enabled: bool = ConfigSchema.CORS_ENABLED.default

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Load configuration from the environment.

        Raises:
            ConfigError: If any variable or routing rule is invalid
        """

        def get(spec: Any) -> Any:
            return load_env_var(spec, environ)

        return cls(
            host=get(ConfigSchema.HOST),
            port=get(ConfigSchema.PORT),
            log_level=get(ConfigSchema.LOG_LEVEL).split()[0].upper(),
            base_url=get(ConfigSchema.OPENROUTER_BASE_URL).rstrip("/"),
            routing_table=RoutingTable.from_env_value(get(ConfigSchema.MODEL_PROVIDER_MAPPING)),
            https=get(ConfigSchema.HTTPS),
            cert_path=get(ConfigSchema.CERT_PATH),
            key_path=get(ConfigSchema.KEY_PATH),
            connect_timeout=get(ConfigSchema.UPSTREAM_CONNECT_TIMEOUT_SECONDS),
            read_timeout=get(ConfigSchema.UPSTREAM_READ_TIMEOUT_SECONDS),
            cors_enabled=get(ConfigSchema.CORS_ENABLED),
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        base_url: str | None = None,
        model_provider_mapping: Iterable[str] | None = None,
        https: bool | None = None,
        cert_path: str | None = None,
        key_path: str | None = None,
        log_level: str | None = None,
    ) -> Config:
        """Return a copy with command-line overrides applied.

        Routing rules given on the command line replace those from the
        environment.
        """
        changes: dict[str, Any] = {}
        if host is not None:
            changes["host"] = host
        if port is not None:
            if not 1 <= port <= 65535:
                raise ConfigError("--port", port, "Must be between 1 and 65535")
            changes["port"] = port
        if base_url is not None:
            if not base_url.startswith(("http://", "https://")):
                raise ConfigError("--base-url", base_url, "Must be an http(s) URL")
            changes["base_url"] = base_url.rstrip("/")
        rules = list(model_provider_mapping or ())
        if rules:
            changes["routing_table"] = RoutingTable.from_strings(rules)
        if https is not None:
            changes["https"] = https
        if cert_path is not None:
            changes["cert_path"] = cert_path
        if key_path is not None:
            changes["key_path"] = key_path
        if log_level is not None:
            changes["log_level"] = log_level.upper()
        return dataclasses.replace(self, **changes)

    def tls_files(self) -> tuple[str, str]:
        """Return the (cert, key) pair required for HTTPS.

        Raises:
            TlsError: If HTTPS is enabled without both paths
            IoError: If either file is not readable
        """
        if not self.cert_path:
            raise TlsError("HTTPS requires --cert-path")
        if not self.key_path:
            raise TlsError("HTTPS requires --key-path")
        for path in (self.cert_path, self.key_path):
            if not os.access(path, os.R_OK):
                raise IoError(f"Cannot read TLS file: {path}")
        return self.cert_path, self.key_path

    @property
    def scheme(self) -> str:
        return "https" if self.https else "http"
