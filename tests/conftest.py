"""Shared fixtures for the smartthings-graph test suite."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from smartthings_graph.config import OAuthConfig
from smartthings_graph.oauth import Token


@pytest.fixture
def token() -> Token:
    return Token(
        access_token="access",
        token_type="Bearer",
        refresh_token="refresh",
        expiry=datetime.now(timezone.utc) + timedelta(hours=72),
    )


@pytest.fixture
def oauth_config() -> OAuthConfig:
    return OAuthConfig(client_id="test-client-id", client_secret="test-client-secret")


@pytest.fixture
def mock_http():
    """Factory for an httpx.Client whose requests are answered by handler."""
    clients = []

    def make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield make
    for client in clients:
        client.close()
