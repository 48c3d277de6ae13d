#!/usr/bin/env python3
"""
Upload SmartThings temperature readings to a ThingSpeak channel.

Sensor names are mapped to ThingSpeak channel fields with a JSON file, e.g.
{"Front Door Sensor": 1, "Garage Door Sensor": 2}.
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional

import httpx

from smartthings_graph import OAuthConfig, SmartThingsClient, SmartThingsError, get_token
from smartthings_graph.config import env_port
from smartthings_graph.errors import APIError, NetworkError
from smartthings_graph.models import CapabilityReading

logger = logging.getLogger("smartthings-thingspeak")

TOKEN_FILE = ".smartthings-thingspeak.json"
THINGSPEAK_UPDATE_URL = "https://api.thingspeak.com/update"


def load_field_map(path: str) -> Dict[str, int]:
    """
    Load the sensor name -> field number mapping.

    Raises:
        ValueError: If the file is not a JSON object of integers
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in field map {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Field map {path} must be a JSON object")
    for name, field in data.items():
        if isinstance(field, bool) or not isinstance(field, int):
            raise ValueError(f"Field map {path} value for {name!r} must be a field number, got {field!r}")
    return data


def build_update_params(field_map: Dict[str, int], readings: List[CapabilityReading]) -> Dict[str, str]:
    """ThingSpeak fieldN parameters for every reading with a mapped field."""
    params = {}
    for reading in readings:
        field = field_map.get(reading.name)
        if field is None:
            logger.warning(f"Unable to find ThingSpeak field for {reading.name!r}")
            continue
        if reading.value is None:
            logger.warning(f"No value reported by {reading.name!r}")
            continue
        params[f"field{field}"] = str(reading.value)
    return params


def update_thingspeak(api_key: str, params: Dict[str, str],
                      client: Optional[httpx.Client] = None) -> None:
    """
    Post one update to ThingSpeak.

    Raises:
        NetworkError: On transport failure
        APIError: On a non-2xx response
    """
    query = {"api_key": api_key, **params}
    try:
        if client is None:
            with httpx.Client(timeout=30.0) as own_client:
                response = own_client.get(THINGSPEAK_UPDATE_URL, params=query)
        else:
            response = client.get(THINGSPEAK_UPDATE_URL, params=query)
    except httpx.RequestError as e:
        raise NetworkError(f"ThingSpeak update failed: {e}") from e

    if not response.is_success:
        # The URL carries the write key, so it is not included
        raise APIError(response.status_code, response.text)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Relay SmartThings temperatures to ThingSpeak")
    parser.add_argument('--client', help='OAuth client ID (overrides SMARTTHINGS_CLIENT_ID)')
    parser.add_argument('--secret', help='OAuth client secret (overrides SMARTTHINGS_CLIENT_SECRET)')
    parser.add_argument('--tokenfile', default=TOKEN_FILE, help=f'Token file (default: ~/{TOKEN_FILE})')
    parser.add_argument('--apikey', help='ThingSpeak write API key (overrides THINGSPEAK_API_KEY)')
    parser.add_argument('--fieldmap', required=True, help='JSON file mapping sensor names to field numbers')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s - %(levelname)s - %(message)s",
    )

    api_key = args.apikey or os.environ.get("THINGSPEAK_API_KEY")
    if not api_key:
        print("Error: Need ThingSpeak write API key (--apikey)")
        sys.exit(1)

    try:
        field_map = load_field_map(args.fieldmap)
        config = OAuthConfig.from_env(args.client, args.secret)
        token = get_token(args.tokenfile, config, port=env_port())

        with SmartThingsClient.connect(token) as client:
            readings = client.get_capability_readings("temperature")

        params = build_update_params(field_map, readings)
        if not params:
            print("Error: No readings matched the field map")
            sys.exit(1)
        update_thingspeak(api_key, params)
    except (SmartThingsError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    logger.info(f"Updated {len(params)} ThingSpeak field(s)")


if __name__ == "__main__":
    main()
