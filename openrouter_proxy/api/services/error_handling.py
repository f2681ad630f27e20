"""Error handling services for API endpoints.

Every failure leaves the proxy as the same JSON envelope:

    {"error": {"message": "<error_message>", "type": "<error_type>"}}
"""

import logging
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from openrouter_proxy.core.errors import ErrorType, ProxyAppError, ServerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ErrorResponseBuilder:
    """Centralized builder for consistent error responses across all endpoints."""

    @staticmethod
    def build(status_code: int, error_type: ErrorType | str, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "message": message,
                    "type": ErrorType(error_type).value,
                }
            },
        )

    @staticmethod
    def from_error(error: ProxyAppError) -> JSONResponse:
        """Build the error response for a typed proxy error."""
        return ErrorResponseBuilder.build(error.status_code, error.error_type, error.message)


async def proxy_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, ProxyAppError):
        return await unhandled_error_handler(request, exc)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return ErrorResponseBuilder.from_error(exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error processing {request.method} {request.url.path}", exc_info=exc)
    return ErrorResponseBuilder.from_error(ServerError(f"Internal server error: {exc}"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProxyAppError, proxy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
