"""
Minimal SmartThings graph API client
"""

import json
import logging
from typing import Any, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import JsonValue, TypeAdapter, ValidationError

from .errors import APIError, DecodeError, NetworkError
from .models import CapabilityReading, DeviceCommand, DeviceDetail, DeviceSummary, Endpoint
from .oauth import Token

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0


def new_http_client(token: Token, timeout: Optional[float] = DEFAULT_TIMEOUT,
                    transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """
    Create an HTTP client that authenticates every request with token.

    Args:
        token: Access token for the Authorization header
        timeout: Request timeout in seconds, None to wait forever
        transport: Optional transport override

    Returns:
        httpx.Client; the caller owns it and should close it
    """
    return httpx.Client(
        headers={
            "Authorization": token.authorization_header,
            "Accept": "application/json",
        },
        timeout=timeout,
        transport=transport,
    )


def get(http_client: httpx.Client, url: str) -> httpx.Response:
    """
    Issue one GET request.

    Raises:
        NetworkError: On transport failure
        APIError: On a non-2xx response
    """
    try:
        response = http_client.get(url)
    except (httpx.RequestError, httpx.InvalidURL) as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    logger.debug(f"GET {url} -> {response.status_code}")
    if not response.is_success:
        raise APIError(response.status_code, response.text, url)
    return response


def decode_json(response: httpx.Response) -> Any:
    """
    Decode a response body as JSON.

    Raises:
        DecodeError: If the body is not valid JSON
    """
    try:
        return json.loads(response.content)
    except ValueError as e:
        raise DecodeError(f"Error decoding JSON from {response.request.url}: {e}") from e


def decode_as(data: Any, model: Union[Type[T], Any]) -> T:
    """
    Validate decoded JSON against a model or type.

    Raises:
        DecodeError: If the data does not match
    """
    try:
        return TypeAdapter(model).validate_python(data)
    except ValidationError as e:
        raise DecodeError(f"Unexpected response shape: {e}") from e


class SmartThingsClient:
    """SmartThings SmartApp API client bound to one resolved endpoint"""

    def __init__(self, http_client: httpx.Client, endpoint: Union[Endpoint, str]):
        """
        Initialize the client

        Args:
            http_client: Authenticated client, see new_http_client()
            endpoint: Resolved Endpoint or its base URL
        """
        self.client = http_client
        self.endpoint = endpoint if isinstance(endpoint, Endpoint) else Endpoint(uri=endpoint)
        self.base_url = self.endpoint.uri.rstrip("/")

    @classmethod
    def connect(cls, token: Token, timeout: Optional[float] = DEFAULT_TIMEOUT,
                transport: Optional[httpx.BaseTransport] = None) -> "SmartThingsClient":
        """
        Build an authenticated client and resolve the account endpoint.

        Raises:
            NetworkError, APIError, DecodeError, EmptyResponseError: From endpoint resolution
        """
        from .endpoints import resolve_endpoint

        http_client = new_http_client(token, timeout=timeout, transport=transport)
        try:
            endpoint = resolve_endpoint(http_client)
        except Exception:
            http_client.close()
            raise
        return cls(http_client, endpoint)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_json(self, path: str) -> Any:
        return decode_json(get(self.client, self._url(path)))

    def list_devices(self) -> List[DeviceSummary]:
        """
        Get all devices

        Returns:
            List of DeviceSummary

        Raises:
            NetworkError, APIError, DecodeError
        """
        data = self._get_json("devices")

        # One server revision wrapped the list in another list.
        if isinstance(data, list) and data and isinstance(data[0], list):
            data = data[0]

        return decode_as(data, List[DeviceSummary])

    def get_device(self, device_id: str) -> DeviceDetail:
        """
        Get a device and its attribute values

        Args:
            device_id: SmartThings device ID

        Raises:
            NetworkError, APIError, DecodeError
        """
        return decode_as(self._get_json(f"devices/{device_id}"), DeviceDetail)

    def get_device_commands(self, device_id: str) -> List[DeviceCommand]:
        """
        Get the commands a device supports

        Args:
            device_id: SmartThings device ID

        Raises:
            NetworkError, APIError, DecodeError
        """
        return decode_as(self._get_json(f"devices/{device_id}/commands"), List[DeviceCommand])

    def get_capability_raw(self, capability: str) -> bytes:
        """Fetch a capability sub-path (e.g. "temperature") and return the raw body."""
        return get(self.client, self._url(capability)).content

    def get_capability(self, capability: str) -> JsonValue:
        """Fetch a capability sub-path and return the decoded JSON."""
        return self._get_json(capability)

    def get_capability_readings(self, capability: str) -> List[CapabilityReading]:
        """
        Fetch a capability listing as typed readings

        Args:
            capability: Capability path, e.g. "temperature" or "battery"

        Returns:
            One CapabilityReading per sensor
        """
        return decode_as(self._get_json(capability), List[CapabilityReading])

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    def __enter__(self) -> "SmartThingsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
