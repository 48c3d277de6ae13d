#!/usr/bin/env python3
"""
OAuth authorization flow for the SmartThings graph API

Each authorization attempt is an AuthSession that:
1. Starts its own local HTTP server on a background thread
2. Redirects the browser from / to the SmartThings authorization page
3. Validates the callback state and exchanges the code for a token
4. Hands the token (or the error) to the caller blocked in wait()
"""

import argparse
import base64
import logging
import os
import secrets
import sys
import threading
import urllib.parse
import webbrowser
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeoutError
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Dict, Optional

import httpx

from .config import (
    CALLBACK_PATH,
    DEFAULT_PORT,
    DONE_PATH,
    ROOT_PATH,
    OAuthConfig,
    env_port,
)
from .errors import (
    AuthorizationCancelledError,
    AuthorizationError,
    AuthorizationTimeoutError,
    ExchangeError,
    MissingCredentialsError,
    SmartThingsError,
    StateMismatchError,
)
from .oauth import PathLike, Token, TokenManager

logger = logging.getLogger(__name__)

STATE_BYTES = 16

AUTH_DONE_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>SmartThings Authorization Successful</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; text-align: center; margin-top: 15vh; }
        h1 { color: #2d3436; }
        p { color: #636e72; }
    </style>
</head>
<body>
    <h1>Authentication Completed</h1>
    <p>You can now close this window and return to your terminal.</p>
</body>
</html>
"""

AUTH_ERROR_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>SmartThings Authorization Failed</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; text-align: center; margin-top: 15vh; }}
        h1 {{ color: #d63031; }}
        p {{ color: #636e72; }}
    </style>
</head>
<body>
    <h1>Authentication Error</h1>
    <p>{message}</p>
    <p>Please see the terminal output for details.</p>
</body>
</html>
"""


def generate_state() -> str:
    """Random anti-forgery state: 16 bytes from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(STATE_BYTES)


def _basic_auth_header(config: OAuthConfig) -> str:
    auth_string = f"{config.client_id}:{config.client_secret}"
    return "Basic " + base64.b64encode(auth_string.encode()).decode()


def exchange_code_for_token(config: OAuthConfig, code: str, redirect_uri: str,
                            client: Optional[httpx.Client] = None) -> Token:
    """
    Exchange an authorization code for a token

    Args:
        config: OAuth configuration
        code: Authorization code from the callback
        redirect_uri: Redirect URI used in the authorization request
        client: Optional HTTP client (a short-lived one is created otherwise)

    Returns:
        Token

    Raises:
        ExchangeError: If the provider rejects the code or cannot be reached
    """
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
    }
    headers = {
        "Authorization": _basic_auth_header(config),
        "Content-Type": "application/x-www-form-urlencoded",
        "Accept": "application/json",
    }

    try:
        if client is None:
            with httpx.Client(timeout=30.0) as own_client:
                response = own_client.post(config.token_url, data=data, headers=headers)
        else:
            response = client.post(config.token_url, data=data, headers=headers)
    except httpx.HTTPError as e:
        raise ExchangeError(f"Code exchange failed: {e}") from e

    if response.status_code != 200:
        # Only the OAuth error code and a short description are reported
        error_msg = f"Code exchange failed (HTTP {response.status_code})"
        try:
            error_json = response.json()
            if "error" in error_json:
                error_msg = f"{error_msg}: {error_json['error']}"
            if "error_description" in error_json:
                error_msg = f"{error_msg} - {error_json['error_description'][:100]}"
        except (ValueError, TypeError):
            pass
        raise ExchangeError(error_msg)

    try:
        token_data = response.json()
    except ValueError as e:
        raise ExchangeError(f"Invalid token response: {e}") from e
    if not isinstance(token_data, dict):
        raise ExchangeError(f"Invalid token response: expected a JSON object, got {type(token_data).__name__}")

    try:
        token = Token.from_response(token_data)
    except (ValueError, KeyError, TypeError, OverflowError) as e:
        raise ExchangeError(f"Invalid token response: {e}") from e

    if not token.access_token:
        raise ExchangeError("Invalid token response: empty access_token")
    return token


class _CallbackServer(HTTPServer):
    """HTTP server owned by exactly one AuthSession."""

    def __init__(self, address, session: "AuthSession"):
        self.session = session
        super().__init__(address, _CallbackHandler)


class _CallbackHandler(BaseHTTPRequestHandler):
    """Routes requests to the session that owns the server"""

    server: _CallbackServer

    def do_GET(self):
        parsed_path = urllib.parse.urlparse(self.path)
        session = self.server.session
        routes = {
            ROOT_PATH: session._handle_root,
            DONE_PATH: session._handle_done,
            CALLBACK_PATH: session._handle_callback,
        }

        route = routes.get(parsed_path.path)
        if route is None:
            self.send_error(404)
            return

        params = {
            key: values[0]
            for key, values in urllib.parse.parse_qs(parsed_path.query).items()
        }
        route(self, params)

    def redirect(self, location: str) -> None:
        self.send_response(307)
        self.send_header("Location", location)
        self.end_headers()

    def send_html(self, status: int, html: str) -> None:
        body = html.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("callback server: " + format, *args)


class AuthSession:
    """
    One OAuth authorization attempt

    The session owns its HTTP server and route table, a fresh anti-forgery
    state and a one-shot result slot. Exactly one result (token or error) is
    delivered; any later callback is answered but ignored.
    """

    def __init__(self, config: OAuthConfig, port: int = DEFAULT_PORT, host: str = "localhost"):
        """
        Args:
            config: OAuth configuration
            port: Local port for the callback server, 0 for any free port
            host: Interface to bind
        """
        self.config = config
        self.host = host
        self.port = port
        self.state = generate_state()
        self._result: "Future[Token]" = Future()
        self._done_served = threading.Event()
        self._server: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def local_url(self) -> str:
        return f"http://{self.host}:{self.port}{ROOT_PATH}"

    @property
    def redirect_uri(self) -> str:
        return self.config.redirect_uri or f"http://{self.host}:{self.port}{CALLBACK_PATH}"

    @property
    def authorize_url(self) -> str:
        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.config.scopes),
            "state": self.state,
        }
        return f"{self.config.authorize_url}?{urllib.parse.urlencode(params)}"

    @property
    def done(self) -> bool:
        """True once a result has been delivered."""
        return self._result.done()

    def start(self) -> None:
        """
        Bind the callback server and serve it on a background thread

        Raises:
            OSError: If the port cannot be bound
        """
        if self._server is not None:
            return
        self._server = _CallbackServer((self.host, self.port), self)
        self.port = self._server.server_address[1]

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name=f"oauth-callback-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Callback server listening on {self.local_url}")

    def wait(self, timeout: Optional[float] = None) -> Token:
        """
        Block until the callback delivers a result

        Args:
            timeout: Seconds to wait; None waits until the callback arrives

        Returns:
            Token

        Raises:
            StateMismatchError, ExchangeError, AuthorizationError: From the callback
            AuthorizationTimeoutError: If timeout expires first
            AuthorizationCancelledError: If cancel() was called
        """
        try:
            return self._result.result(timeout)
        except FutureTimeoutError:
            raise AuthorizationTimeoutError(
                f"No authorization callback received within {timeout} seconds"
            )

    def fetch_token(self, timeout: Optional[float] = None) -> Token:
        """Start the server if needed and wait for the token."""
        self.start()
        return self.wait(timeout)

    def cancel(self) -> None:
        """Fail a pending wait() with AuthorizationCancelledError."""
        self._deliver(error=AuthorizationCancelledError("Authorization cancelled"))

    def close(self, grace: float = 2.0) -> None:
        """
        Stop the callback server

        After a successful authorization, waits up to grace seconds for the
        browser to load the done page first.
        """
        if self._server is None:
            return
        if self._result.done() and self._result.exception() is None:
            self._done_served.wait(grace)

        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None

    def __enter__(self) -> "AuthSession":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _deliver(self, token: Optional[Token] = None,
                 error: Optional[BaseException] = None) -> bool:
        """Write the result slot; returns False if it was already written."""
        try:
            if error is not None:
                self._result.set_exception(error)
            else:
                self._result.set_result(token)
        except InvalidStateError:
            logger.debug("Authorization result already delivered, ignoring")
            return False
        return True

    def handle_callback(self, params: Dict[str, str]) -> Token:
        """
        Validate callback parameters and exchange the code

        Raises:
            StateMismatchError: If state differs from the session state
            AuthorizationError: If the provider reported an error
            ExchangeError: If the code is missing or the exchange fails
        """
        received_state = params.get("state")
        if not secrets.compare_digest((received_state or "").encode(), self.state.encode()):
            raise StateMismatchError(f"Invalid OAuth state, got {received_state!r}")

        if "error" in params:
            description = params.get("error_description", "")
            raise AuthorizationError(f"Authorization denied: {params['error']} {description}".strip())

        code = params.get("code")
        if not code:
            raise ExchangeError("No authorization code in callback")

        return exchange_code_for_token(self.config, code, self.redirect_uri)

    def _handle_root(self, handler: _CallbackHandler, params: Dict[str, str]) -> None:
        handler.redirect(self.authorize_url)

    def _handle_done(self, handler: _CallbackHandler, params: Dict[str, str]) -> None:
        handler.send_html(200, AUTH_DONE_HTML)
        self._done_served.set()

    def _handle_callback(self, handler: _CallbackHandler, params: Dict[str, str]) -> None:
        if self._result.done():
            handler.send_html(409, AUTH_ERROR_HTML.format(message="This authorization session has already finished."))
            return

        logger.debug("Authorization callback received")
        try:
            token = self.handle_callback(params)
        except AuthorizationError as e:
            self._reject_callback(handler, e)
            return
        except Exception as e:
            # The waiting caller must always receive a result
            logger.exception("Unexpected error while handling authorization callback")
            error = ExchangeError(f"Code exchange failed: {e}")
            error.__cause__ = e
            self._reject_callback(handler, error)
            return

        self._deliver(token=token)
        handler.redirect(DONE_PATH)

    def _reject_callback(self, handler: _CallbackHandler, error: AuthorizationError) -> None:
        logger.warning(f"Authorization callback rejected: {error}")
        self._deliver(error=error)
        handler.send_html(400, AUTH_ERROR_HTML.format(message="Authorization failed."))


def _print_login_prompt(url: str) -> None:
    print(f"Please login by visiting {url}")


def get_token(token_file: PathLike, config: OAuthConfig, port: int = DEFAULT_PORT,
              timeout: Optional[float] = None, open_browser: bool = False,
              notify: Callable[[str], None] = _print_login_prompt) -> Token:
    """
    Return a token for config, authorizing only when needed

    The token is loaded from token_file first. If that fails or the token
    has expired, a full authorization runs and the new token is saved to
    token_file before it is returned.

    Args:
        token_file: Token file name, resolved with resolve_token_path()
        config: OAuth configuration
        port: Local callback server port
        timeout: Seconds to wait for the callback; None waits forever
        open_browser: Open the local login URL in a browser
        notify: Called with the local login URL

    Raises:
        MissingCredentialsError: If authorization is needed without client id and secret
        SmartThingsError: From authorization or token storage
    """
    manager = TokenManager(token_file)
    token = manager.load_valid()
    if token is not None:
        return token

    if not config.has_credentials:
        raise MissingCredentialsError("Need client id and secret to generate a new token")

    with AuthSession(config, port=port) as session:
        notify(session.local_url)
        if open_browser:
            webbrowser.open(session.local_url)
        token = session.wait(timeout)

    manager.save(token)
    logger.info(f"Token saved to {manager.token_file_path}")
    return token


def main():
    """CLI entry point: authorize and save a token"""
    parser = argparse.ArgumentParser(description="Authorize access to the SmartThings graph API")
    parser.add_argument('--client', help='OAuth client ID (overrides SMARTTHINGS_CLIENT_ID)')
    parser.add_argument('--secret', help='OAuth client secret (overrides SMARTTHINGS_CLIENT_SECRET)')
    parser.add_argument('--tokenfile', help='Token file (overrides SMARTTHINGS_TOKEN_FILE)')
    parser.add_argument('--port', type=int, help=f'Local callback port (default: {DEFAULT_PORT})')
    parser.add_argument('--timeout', type=float, help='Seconds to wait for the browser callback')
    parser.add_argument('--no-browser', action='store_true', help='Do not open a browser')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = OAuthConfig.from_env(args.client, args.secret)
        token_file = args.tokenfile or os.environ.get("SMARTTHINGS_TOKEN_FILE", "")
        port = args.port or env_port()

        token = get_token(
            token_file,
            config,
            port=port,
            timeout=args.timeout,
            open_browser=not args.no_browser,
        )
    except KeyboardInterrupt:
        print("\nAuthorization cancelled by user.")
        sys.exit(1)
    except (SmartThingsError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print("Success! Token is available.")
    if token.expiry:
        print(f"Token expires at: {token.expiry.isoformat()}")


if __name__ == "__main__":
    main()
