#!/usr/bin/env python3
"""Fetch temperature and battery readings with a saved or new OAuth token."""

import os

from smartthings_graph import OAuthConfig, SmartThingsClient, get_token


def main():
    config = OAuthConfig(
        client_id=os.environ["SMARTTHINGS_CLIENT_ID"],
        client_secret=os.environ["SMARTTHINGS_CLIENT_SECRET"],
    )

    # Loads ~/.example_st_token.json, or asks you to log in at http://localhost:4567
    token = get_token(".example_st_token.json", config)

    with SmartThingsClient.connect(token) as client:
        print(f"Temperature content: {client.get_capability_raw('temperature').decode()}")
        print(f"Battery content: {client.get_capability_raw('battery').decode()}")


if __name__ == "__main__":
    main()
