"""OAuth client configuration for the SmartThings graph API."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

GRAPH_BASE_URL = "https://graph.api.smartthings.com"
AUTHORIZE_URL = f"{GRAPH_BASE_URL}/oauth/authorize"
TOKEN_URL = f"{GRAPH_BASE_URL}/oauth/token"

# Local callback server
DEFAULT_PORT = 4567
CALLBACK_PATH = "/OAuthCallback"
DONE_PATH = "/OauthDone"
ROOT_PATH = "/"

DEFAULT_TOKEN_FILE = ".st_token.json"


@dataclass
class OAuthConfig:
    """OAuth configuration for SmartThings."""

    client_id: str
    client_secret: str
    scopes: List[str] = field(default_factory=lambda: ["app"])
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    redirect_uri: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, client_id: Optional[str] = None,
                 client_secret: Optional[str] = None) -> "OAuthConfig":
        """
        Build a configuration from arguments, falling back to the environment.

        A .env file in the current or parent directories is loaded first.

        Args:
            client_id: Overrides SMARTTHINGS_CLIENT_ID
            client_secret: Overrides SMARTTHINGS_CLIENT_SECRET

        Returns:
            OAuthConfig, possibly with empty credentials
        """
        load_dotenv()
        return cls(
            client_id=client_id or os.environ.get("SMARTTHINGS_CLIENT_ID", ""),
            client_secret=client_secret or os.environ.get("SMARTTHINGS_CLIENT_SECRET", ""),
            redirect_uri=os.environ.get("SMARTTHINGS_REDIRECT_URI") or None,
        )


def env_port(default: int = DEFAULT_PORT) -> int:
    """Callback port from SMARTTHINGS_CALLBACK_PORT, or the default."""
    value = os.environ.get("SMARTTHINGS_CALLBACK_PORT")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"SMARTTHINGS_CALLBACK_PORT must be an integer, got {value!r}")
