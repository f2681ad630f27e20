"""Bearer credential extraction from inbound request headers."""

from __future__ import annotations

from typing import Protocol

from openrouter_proxy.core.errors import AuthError, AuthFailure

BEARER_PREFIX = "Bearer "


class HeaderLookup(Protocol):
    def getlist(self, key: str) -> list[str]: ...


def _is_visible_text(value: str) -> bool:
    # Visible ASCII plus space and horizontal tab
    return all(ch == "\t" or 32 <= ord(ch) < 127 for ch in value)


def extract_bearer_token(headers: HeaderLookup) -> str:
    """Return the token carried by the ``Authorization: Bearer`` header.

    The prefix check is case-sensitive and the token itself is not validated;
    an empty token after the prefix is returned as-is.

    Raises:
        AuthError: MISSING when the header is absent, MALFORMED when it is
            repeated, not plain text, or lacks the ``Bearer `` prefix
    """
    values = headers.getlist("authorization")
    if not values:
        raise AuthError(AuthFailure.MISSING, "Missing Authorization header")
    if len(values) > 1:
        raise AuthError(AuthFailure.MALFORMED, "Multiple Authorization headers provided")

    value = values[0]
    if not _is_visible_text(value):
        raise AuthError(AuthFailure.MALFORMED, "Authorization header is not valid text")
    if not value.startswith(BEARER_PREFIX):
        raise AuthError(
            AuthFailure.MALFORMED,
            "Invalid Authorization format, expected 'Bearer YOUR_API_KEY'",
        )

    return value[len(BEARER_PREFIX) :]
