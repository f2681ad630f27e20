"""Shared pytest configuration and fixtures for OpenRouter Proxy tests."""

import pytest
from fastapi.testclient import TestClient

from openrouter_proxy.core.config import Config
from openrouter_proxy.core.config.schema import ConfigSchema
from openrouter_proxy.core.routing import RoutingTable
from openrouter_proxy.main import create_app
from tests.config import TEST_BASE_URL, TEST_MAPPING

# Import HTTP mocking fixtures from fixtures module
pytest_plugins = ["tests.fixtures.mock_http"]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (app + mocked upstream)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        if "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "tests/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def clean_proxy_environment(monkeypatch):
    """Keep the developer's environment (or a local .env) out of the tests."""
    for name in ConfigSchema.all_specs():
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def routing_table():
    return RoutingTable.from_strings(TEST_MAPPING)


@pytest.fixture
def test_config(routing_table):
    return Config(base_url=TEST_BASE_URL, routing_table=routing_table)


@pytest.fixture
def app(test_config):
    return create_app(test_config)


@pytest.fixture
def client(app, mock_upstream_api):
    """TestClient whose upstream calls are served by the RESPX router."""
    with TestClient(app) as test_client:
        yield test_client
