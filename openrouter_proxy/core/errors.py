"""Error types for OpenRouter Proxy.

Every per-request failure is raised as a ProxyAppError subclass carrying the
HTTP status and the error type reported in the JSON error envelope.
"""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    """Error type categories reported in the ``error.type`` field.

    When adding new error types:
    1. Add the enum value here
    2. Add a ProxyAppError subclass with the matching status code
    """

    AUTH_ERROR = "auth_error"  # Missing or malformed bearer credential
    PARSE_ERROR = "parse_error"  # Request body is not a JSON object
    PROXY_ERROR = "proxy_error"  # Upstream response could not be relayed
    REQUEST_ERROR = "request_error"  # Upstream transport failure
    TLS_ERROR = "tls_error"  # TLS setup failure
    IO_ERROR = "io_error"  # Local I/O failure
    SERVER_ERROR = "server_error"  # Catch-all internal fault


class AuthFailure(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"


class ConfigError(Exception):
    """Configuration validation error, fatal at startup.

    Raised when an environment variable, CLI option or routing rule fails
    validation or cannot be converted to the expected type.

    Attributes:
        source: The environment variable or option name
        value: The raw value that failed validation
        message: Human-readable error message
    """

    def __init__(self, source: str, value: object, message: str) -> None:
        self.source = source
        self.value = value
        self.message = message
        super().__init__(f"{source}={value}: {message}")


class ProxyAppError(Exception):
    """Base exception for all per-request proxy errors.

    Attributes:
        message: Human-readable message returned to the caller
        status_code: HTTP status of the error response
        error_type: Value of ``error.type`` in the envelope
    """

    status_code: int = 500
    error_type: ErrorType = ErrorType.SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class AuthError(ProxyAppError):
    """Raised when the Authorization header is absent or unusable."""

    status_code = 401
    error_type = ErrorType.AUTH_ERROR

    def __init__(self, reason: AuthFailure, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class ParseError(ProxyAppError):
    """Raised when the request body cannot be parsed or re-serialized."""

    status_code = 400
    error_type = ErrorType.PARSE_ERROR


class ProxyError(ProxyAppError):
    """Raised when the upstream response cannot be read or relayed."""

    status_code = 502
    error_type = ErrorType.PROXY_ERROR


class UpstreamRequestError(ProxyError):
    """Raised when the upstream request fails at the transport level.

    Attributes:
        cause: The underlying httpx exception
    """

    error_type = ErrorType.REQUEST_ERROR

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class TlsError(ProxyAppError):
    error_type = ErrorType.TLS_ERROR


class IoError(ProxyAppError):
    error_type = ErrorType.IO_ERROR


class ServerError(ProxyAppError):
    error_type = ErrorType.SERVER_ERROR
