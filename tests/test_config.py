"""Tests for config.py."""

from unittest.mock import patch

import pytest

from smartthings_graph.config import AUTHORIZE_URL, DEFAULT_PORT, TOKEN_URL, OAuthConfig, env_port


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SMARTTHINGS_CLIENT_ID", "SMARTTHINGS_CLIENT_SECRET",
                 "SMARTTHINGS_REDIRECT_URI", "SMARTTHINGS_CALLBACK_PORT"):
        monkeypatch.delenv(name, raising=False)
    with patch("smartthings_graph.config.load_dotenv"):
        yield


class TestOAuthConfig:
    """Test OAuthConfig defaults and environment loading."""

    def test_defaults(self):
        config = OAuthConfig(client_id="id", client_secret="secret")
        assert config.scopes == ["app"]
        assert config.authorize_url == AUTHORIZE_URL
        assert config.token_url == TOKEN_URL
        assert config.redirect_uri is None
        assert config.has_credentials

    def test_missing_credentials(self):
        assert not OAuthConfig(client_id="id", client_secret="").has_credentials

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SMARTTHINGS_CLIENT_ID", "env-id")
        monkeypatch.setenv("SMARTTHINGS_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("SMARTTHINGS_REDIRECT_URI", "http://example.com/cb")

        config = OAuthConfig.from_env()

        assert config.client_id == "env-id"
        assert config.client_secret == "env-secret"
        assert config.redirect_uri == "http://example.com/cb"

    def test_arguments_override_env(self, monkeypatch):
        monkeypatch.setenv("SMARTTHINGS_CLIENT_ID", "env-id")
        config = OAuthConfig.from_env(client_id="arg-id", client_secret="arg-secret")
        assert config.client_id == "arg-id"
        assert config.client_secret == "arg-secret"

    def test_empty_env(self):
        config = OAuthConfig.from_env()
        assert config.client_id == ""
        assert not config.has_credentials


class TestEnvPort:
    """Test env_port."""

    def test_default(self):
        assert env_port() == DEFAULT_PORT

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SMARTTHINGS_CALLBACK_PORT", "8080")
        assert env_port() == 8080

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv("SMARTTHINGS_CALLBACK_PORT", "abc")
        with pytest.raises(ValueError, match="SMARTTHINGS_CALLBACK_PORT"):
            env_port()
