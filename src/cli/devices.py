#!/usr/bin/env python3
"""
List SmartThings devices and show their attributes.

This script:
1. Loads a saved token, or runs the OAuth flow to get a new one
2. Resolves the account endpoint
3. Prints the device list, or the attributes of one or all devices
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from smartthings_graph import OAuthConfig, SmartThingsClient, SmartThingsError, get_token
from smartthings_graph.config import env_port
from smartthings_graph.models import DeviceCommand, DeviceDetail, DeviceSummary

TOKEN_FILE_PREFIX = ".st_token"


def default_token_file(client_id: Optional[str]) -> str:
    """Token file name derived from the client ID."""
    if not client_id:
        raise ValueError("Must specify Client ID (--client) or Token File (--tokenfile)")
    return f"{TOKEN_FILE_PREFIX}_{client_id}.json"


def format_device_list(devices: List[DeviceSummary]) -> str:
    lines = [f"Found {len(devices)} device(s):"]
    for device in devices:
        lines.append(f"- {device.display_name or device.name} (ID: {device.id}, Name: {device.name})")
    return "\n".join(lines)


def format_device(device: DeviceDetail, commands: Optional[List[DeviceCommand]] = None) -> str:
    lines = [f"=== {device.display_name or device.name} ({device.id}) ==="]
    if not device.attributes:
        lines.append("  (no attributes)")
    for name in sorted(device.attributes):
        value = device.attributes[name]
        formatted = "null" if value is None else json.dumps(value) if isinstance(value, (dict, list)) else str(value)
        lines.append(f"  {name}: {formatted}")

    if commands is not None:
        lines.append("  Commands:")
        for command in commands:
            params = ", ".join(f"{k}={v}" for k, v in command.params.items())
            lines.append(f"  - {command.name}({params})")
    return "\n".join(lines)


def run(client: SmartThingsClient, device_id: Optional[str] = None,
        all_devices: bool = False, show_commands: bool = False) -> str:
    """Fetch what was asked for and return the text to print."""
    if device_id:
        ids = [device_id]
    elif all_devices:
        ids = [device.id for device in client.list_devices()]
    else:
        return format_device_list(client.list_devices())

    blocks = []
    for current_id in ids:
        detail = client.get_device(current_id)
        commands = client.get_device_commands(current_id) if show_commands else None
        blocks.append(format_device(detail, commands))
    return "\n\n".join(blocks)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Show SmartThings devices")
    parser.add_argument('--client', help='OAuth client ID (overrides SMARTTHINGS_CLIENT_ID)')
    parser.add_argument('--secret', help='OAuth client secret (overrides SMARTTHINGS_CLIENT_SECRET)')
    parser.add_argument('--tokenfile', help='Token file (default: .st_token_<client>.json in your home directory)')
    parser.add_argument('--port', type=int, help='Local OAuth callback port')
    parser.add_argument('--device', help='Show attributes of this device ID')
    parser.add_argument('--all', action='store_true', help='Show attributes of all devices')
    parser.add_argument('--commands', action='store_true', help='Also show supported commands')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = OAuthConfig.from_env(args.client, args.secret)
        token_file = (
            args.tokenfile
            or os.environ.get("SMARTTHINGS_TOKEN_FILE")
            or default_token_file(config.client_id)
        )
        token = get_token(token_file, config, port=args.port or env_port())

        with SmartThingsClient.connect(token) as client:
            output = run(client, args.device, args.all, args.commands)
    except (SmartThingsError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
