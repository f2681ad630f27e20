import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from openrouter_proxy import __version__
from openrouter_proxy.api.endpoints import router as api_router
from openrouter_proxy.api.services.error_handling import register_error_handlers
from openrouter_proxy.api.services.proxy_service import ProxyService
from openrouter_proxy.core.client import UpstreamClient
from openrouter_proxy.core.config import Config, ConfigError
from openrouter_proxy.core.config.validation import validate_all
from openrouter_proxy.core.errors import IoError, TlsError
from openrouter_proxy.core.logging import configure_root_logging

logger = logging.getLogger(__name__)


def log_routing_rules(config: Config) -> None:
    if not config.routing_table:
        logger.info("No model provider mapping configured")
        return
    logger.info("Model provider mapping:")
    for rule in config.routing_table.rules:
        logger.info(f"  pattern '{rule.pattern}' -> providers: {list(rule.providers)}")


def create_app(config: Config | None = None) -> FastAPI:
    """Build the proxy application around an immutable configuration.

    The upstream httpx client is opened in the lifespan and shared by all
    requests.
    """
    if config is None:
        config = Config.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        client = UpstreamClient.from_config(config)
        app.state.proxy_service = ProxyService(config, client)
        log_routing_rules(config)
        logger.info(f"Forwarding requests to {config.base_url}")
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="OpenRouter Proxy", version=__version__, lifespan=lifespan)
    app.state.config = config

    if config.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)
    app.include_router(api_router)
    return app


def run_server(config: Config) -> None:
    """Serve the app with uvicorn, over TLS when configured.

    Raises:
        TlsError: If HTTPS is enabled without certificate and key paths
        IoError: If the certificate or key cannot be read
    """
    ssl_options: dict[str, str] = {}
    if config.https:
        cert_path, key_path = config.tls_files()
        ssl_options = {"ssl_certfile": cert_path, "ssl_keyfile": key_path}

    logger.info(f"API proxy running on {config.scheme}://{config.host}:{config.port}")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=config.log_level == "DEBUG",
        **ssl_options,
    )


def main() -> None:
    errors = validate_all()
    for error in errors:
        print(f"Configuration error: {error}", file=sys.stderr)
    if errors:
        sys.exit(1)

    try:
        config = Config.load()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_root_logging(config.log_level)
    try:
        run_server(config)
    except (TlsError, IoError) as e:
        logger.error(f"TLS error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
