"""
OAuth token model and on-disk token storage for the SmartThings graph API.

A token is stored as a single JSON file readable only by its owner. Expired
tokens are not refreshed; callers treat them as absent and run a new
authorization (see oauth_setup.get_token).
"""

import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from .config import DEFAULT_TOKEN_FILE
from .errors import (
    DecodeError,
    InvalidTokenError,
    ResolutionError,
    StorageError,
    TokenNotFoundError,
)

logger = logging.getLogger(__name__)

# A token this close to its expiry is already considered expired.
EXPIRY_DELTA = timedelta(seconds=10)

PathLike = Union[str, "os.PathLike[str]"]


class Token(BaseModel):
    """OAuth token data model."""

    access_token: str = Field(description="OAuth access token")
    token_type: str = Field(default="Bearer", description="Token type, sent in the Authorization header")
    refresh_token: Optional[str] = Field(default=None, description="OAuth refresh token, if issued")
    expiry: Optional[datetime] = Field(default=None, description="When the access token expires; None means never")

    @classmethod
    def from_response(cls, data: Dict[str, Any], now: Optional[datetime] = None) -> "Token":
        """
        Build a token from a provider token endpoint response.

        Args:
            data: Decoded JSON body of the token response
            now: Reference time for expires_in (defaults to the current UTC time)

        Raises:
            KeyError: If access_token is missing
        """
        now = now or datetime.now(timezone.utc)
        expiry = None
        if data.get("expires_in") is not None:
            expiry = now + timedelta(seconds=int(data["expires_in"]))

        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry,
        )

    @property
    def expired(self) -> bool:
        if self.expiry is None:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry - EXPIRY_DELTA <= datetime.now(timezone.utc)

    @property
    def valid(self) -> bool:
        """True if the token has an access credential and has not expired."""
        return bool(self.access_token) and not self.expired

    @property
    def authorization_header(self) -> str:
        token_type = self.token_type or "Bearer"
        # Providers return "bearer"; servers expect the canonical casing.
        if token_type.lower() == "bearer":
            token_type = "Bearer"
        return f"{token_type} {self.access_token}"


def _home_dir() -> Path:
    try:
        return Path.home()
    except (KeyError, RuntimeError) as e:
        raise ResolutionError(f"Cannot determine home directory: {e}") from e


def resolve_token_path(name: PathLike = "") -> Path:
    """
    Resolve the token file location.

    Absolute paths are returned as is, relative names are placed under the
    user's home directory, and an empty name selects the default token file
    in the home directory. A leading "~" is expanded first.

    Raises:
        ResolutionError: If the home directory cannot be determined
    """
    name = os.fspath(name) if name else ""
    if name.startswith("~"):
        expanded = os.path.expanduser(name)
        if expanded.startswith("~"):
            raise ResolutionError(f"Cannot expand home directory in {name!r}")
        name = expanded

    if os.path.isabs(name):
        return Path(name)
    if name:
        return _home_dir() / name
    return _home_dir() / DEFAULT_TOKEN_FILE


def load_token(path: PathLike) -> Token:
    """
    Load a token from a JSON file.

    Raises:
        TokenNotFoundError: If the file does not exist
        StorageError: If the file cannot be read
        DecodeError: If the file is not a valid token document
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            contents = f.read()
    except FileNotFoundError as e:
        raise TokenNotFoundError(f"Token file does not exist: {path}") from e
    except OSError as e:
        raise StorageError(f"Cannot read token file {path}: {e}") from e

    try:
        token = Token.model_validate_json(contents)
    except ValueError as e:
        raise DecodeError(f"Token file {path} is not a valid token: {e}") from e

    logger.debug(f"Loaded token from {path}")
    return token


def save_token(path: PathLike, token: Optional[Token]) -> None:
    """
    Save a token to a JSON file, replacing any previous content.

    Writes to a temp file in the same directory and renames it into place;
    the final file has 600 permissions. The parent directory must exist.

    Raises:
        InvalidTokenError: If token is None or has an empty access token
        StorageError: If the file cannot be written
    """
    if token is None or not token.access_token:
        raise InvalidTokenError("Refusing to save an empty token")

    path = Path(path)
    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".token_",
            suffix=".tmp"
        )
    except OSError as e:
        raise StorageError(f"Cannot write token file {path}: {e}") from e

    try:
        # Set permissions to 600 (owner read/write only)
        os.chmod(temp_path, 0o600)

        with os.fdopen(temp_fd, "w") as f:
            f.write(token.model_dump_json(indent=2))

        os.replace(temp_path, path)
        os.chmod(path, 0o600)

    except OSError as e:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise StorageError(f"Cannot write token file {path}: {e}") from e

    logger.debug(f"Saved token to {path}")


class TokenManager:
    """Token storage bound to one resolved token file."""

    def __init__(self, token_file: PathLike = ""):
        self.token_file_path = resolve_token_path(token_file)

    def load(self) -> Token:
        return load_token(self.token_file_path)

    def save(self, token: Token) -> None:
        save_token(self.token_file_path, token)

    def load_valid(self) -> Optional[Token]:
        """
        Load the stored token if it is usable.

        Returns:
            Token if the file exists, decodes and is unexpired, None otherwise
        """
        try:
            token = self.load()
        except TokenNotFoundError:
            logger.debug(f"Token file does not exist: {self.token_file_path}")
            return None
        except (StorageError, DecodeError) as e:
            logger.warning(f"Ignoring unusable token file: {e}")
            return None

        if not token.valid:
            logger.info("Stored token is expired, a new authorization is required")
            return None
        return token

