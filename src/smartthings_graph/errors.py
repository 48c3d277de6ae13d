"""Exceptions raised by the SmartThings graph client."""

from typing import Optional


class SmartThingsError(Exception):
    """Base class for all errors raised by this package."""

    pass


class StorageError(SmartThingsError):
    """Token file could not be read or written."""

    pass


class TokenNotFoundError(StorageError):
    """Token file does not exist."""

    pass


class DecodeError(SmartThingsError, ValueError):
    """Malformed JSON or a payload that does not match the expected shape."""

    pass


class InvalidTokenError(SmartThingsError, ValueError):
    """Refused to persist a missing or empty token."""

    pass


class ResolutionError(SmartThingsError):
    """Home directory could not be determined."""

    pass


class MissingCredentialsError(SmartThingsError, ValueError):
    """A new authorization is required but client id or secret is missing."""

    pass


class AuthorizationError(SmartThingsError):
    """OAuth authorization attempt failed."""

    pass


class StateMismatchError(AuthorizationError):
    """Callback state parameter does not match the session state."""

    pass


class ExchangeError(AuthorizationError):
    """Authorization code could not be exchanged for a token."""

    pass


class AuthorizationTimeoutError(AuthorizationError):
    """No callback arrived before the wait timeout expired."""

    pass


class AuthorizationCancelledError(AuthorizationError):
    """Authorization session was cancelled before a callback arrived."""

    pass


class NetworkError(SmartThingsError):
    """Transport level failure talking to SmartThings."""

    pass


class EmptyResponseError(SmartThingsError):
    """Endpoint resolution returned no entries."""

    pass


class APIError(SmartThingsError):
    """SmartThings answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, body: str, url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        message = f"HTTP {status_code}"
        if url:
            message = f"{message} from {url}"
        if body:
            message = f"{message}: {body[:200]}"
        super().__init__(message)
