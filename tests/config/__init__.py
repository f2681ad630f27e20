"""Test configuration module for OpenRouter Proxy tests."""

from .test_config import (
    TEST_BASE_URL,
    TEST_HEADERS,
    TEST_MAPPING,
    TEST_TOKEN,
)

__all__ = [
    "TEST_BASE_URL",
    "TEST_HEADERS",
    "TEST_MAPPING",
    "TEST_TOKEN",
]
