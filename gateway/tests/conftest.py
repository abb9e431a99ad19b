"""
Pytest configuration and fixtures for the RPC gateway tests.
"""

import pytest
import responses
from fastapi.testclient import TestClient

from gateway.app.config import GatewaySettings
from gateway.app.main import app
from gateway.app.pipeline import RpcPipeline, provide_pipeline
from gateway.app.upstream import Forwarder, UpstreamEndpoint


# =============================================================================
# Configuration
# =============================================================================

UPSTREAM_URL = "https://rpc.example.com"


# =============================================================================
# Pytest Fixtures
# =============================================================================

@pytest.fixture
def settings():
    """Gateway settings pointing at the fake upstream."""
    return GatewaySettings(
        upstream_url=UPSTREAM_URL,
        upstream_timeout=5.0,
        chain_id=9999,
        block_number=1,
        balance=0,
    )


@pytest.fixture
def endpoint():
    return UpstreamEndpoint(base_url=UPSTREAM_URL)


@pytest.fixture
def forwarder(endpoint):
    forwarder = Forwarder(endpoint, timeout=5.0)
    yield forwarder
    forwarder.close()


@pytest.fixture
def pipeline(settings):
    pipeline = RpcPipeline.from_settings(settings)
    yield pipeline
    pipeline.forwarder.close()


@pytest.fixture
def override_pipeline(pipeline):
    """Serve the test pipeline instead of the global one."""
    async def provide_test_pipeline():
        return pipeline

    app.dependency_overrides[provide_pipeline] = provide_test_pipeline
    yield pipeline
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_pipeline):
    """Get FastAPI test client wired to the test pipeline."""
    return TestClient(app)


@pytest.fixture
def live_client(override_pipeline):
    """
    Test client running one event loop for all requests, so concurrent
    calls share the loop and its thread pool like under uvicorn.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def mock_upstream():
    """
    Fake upstream node.

    Any call to a URL that was not registered fails with a
    ConnectionError, like an unreachable node.
    """
    with responses.RequestsMock() as rsps:
        yield rsps


# =============================================================================
# Environment Variables
# =============================================================================

@pytest.fixture(autouse=True)
def set_test_env(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("UPSTREAM_URL", UPSTREAM_URL)
    monkeypatch.delenv("UPSTREAM_API_KEY", raising=False)
    monkeypatch.delenv("INFURA_API_KEY", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")


# =============================================================================
# Test Utilities
# =============================================================================

@pytest.fixture
def eth_call_payload():
    """Sample pass-through request."""
    return {
        "jsonrpc": "2.0",
        "id": 4,
        "method": "eth_call",
        "params": [
            {
                "to": "0xa0b86a33e6d2164388426c72a34a687425225486",
                "data": "0x70a08231000000000000000000000000ab5801a7d398351b8be11c439e05c5b3259aec9b",
            },
            "latest",
        ],
    }
