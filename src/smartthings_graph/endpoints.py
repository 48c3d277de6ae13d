"""Resolution of the per-account SmartApp endpoint."""

import logging
from typing import List

import httpx

from .client import decode_as, decode_json, get
from .config import GRAPH_BASE_URL
from .errors import EmptyResponseError
from .models import Endpoint

logger = logging.getLogger(__name__)

ENDPOINTS_URI = f"{GRAPH_BASE_URL}/api/smartapps/endpoints"


def resolve_endpoint(http_client: httpx.Client, url: str = ENDPOINTS_URI) -> Endpoint:
    """
    Fetch the endpoint all SmartApp requests for this account are based on.

    The provider returns a JSON array of endpoint descriptors; only the first
    one is used.

    Args:
        http_client: Authenticated client
        url: Endpoints URI

    Returns:
        The first Endpoint

    Raises:
        NetworkError: On transport failure
        APIError: On a non-2xx response
        DecodeError: On malformed JSON or a descriptor without uri
        EmptyResponseError: If the array is empty
    """
    data = decode_json(get(http_client, url))
    if data == []:
        raise EmptyResponseError(f"Endpoint URI {url} returned no content")

    endpoints = decode_as(data, List[Endpoint])
    logger.debug(f"Resolved endpoint {endpoints[0].uri}")
    return endpoints[0]
