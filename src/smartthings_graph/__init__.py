"""SmartThings graph API client package."""

from .client import SmartThingsClient, new_http_client
from .config import OAuthConfig
from .endpoints import ENDPOINTS_URI, resolve_endpoint
from .errors import (
    APIError,
    AuthorizationCancelledError,
    AuthorizationError,
    AuthorizationTimeoutError,
    DecodeError,
    EmptyResponseError,
    ExchangeError,
    InvalidTokenError,
    MissingCredentialsError,
    NetworkError,
    ResolutionError,
    SmartThingsError,
    StateMismatchError,
    StorageError,
    TokenNotFoundError,
)
from .models import CapabilityReading, DeviceCommand, DeviceDetail, DeviceSummary, Endpoint
from .oauth import Token, TokenManager, load_token, resolve_token_path, save_token
from .oauth_setup import AuthSession, get_token

__version__ = "0.1.0"
__all__ = [
    "SmartThingsClient",
    "new_http_client",
    "OAuthConfig",
    "ENDPOINTS_URI",
    "resolve_endpoint",
    "AuthSession",
    "get_token",
    "Token",
    "TokenManager",
    "load_token",
    "save_token",
    "resolve_token_path",
    "Endpoint",
    "DeviceSummary",
    "DeviceDetail",
    "DeviceCommand",
    "CapabilityReading",
    "SmartThingsError",
    "StorageError",
    "TokenNotFoundError",
    "DecodeError",
    "InvalidTokenError",
    "ResolutionError",
    "AuthorizationError",
    "AuthorizationTimeoutError",
    "AuthorizationCancelledError",
    "MissingCredentialsError",
    "StateMismatchError",
    "ExchangeError",
    "NetworkError",
    "APIError",
    "EmptyResponseError",
]
