"""
Interactive setup wizard for the restpki CLI.

Configures the endpoint profile and the API access token.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ...config import (
    BUILTIN_PROFILES,
    CONFIG_FILE,
    ServerProfile,
    get_access_token,
    get_active_profile,
    get_profile,
    make_custom_profile,
    save_server_config,
)
from ...constants import DEFAULT_TIMEOUT_PING, ENV_TOKEN, ENV_URL
from ...errors import ConfigError
from ...network.client import RestPkiClient
from ..helpers import offer_save_token, prompt_access_token, safe_input

if TYPE_CHECKING:
    import argparse


def _choose_profile(preset_profile: str | None = None) -> ServerProfile:
    """Step 1: choose a server profile."""
    if preset_profile:
        try:
            profile = get_profile(preset_profile)
        except KeyError as e:
            print(f"Error: {e.args[0]}", file=sys.stderr)
            sys.exit(1)
        print(f"Using profile: {profile.display_name}")
        print(f"  URL: {profile.url}")
        return profile

    print("Choose a REST PKI endpoint:\n")
    profiles_list = sorted(BUILTIN_PROFILES.values(), key=lambda p: p.name)
    for i, p in enumerate(profiles_list, 1):
        print(f"  {i}. {p.display_name}")
    print(f"  {len(profiles_list) + 1}. Custom endpoint (enter URL)")
    print()

    choice = safe_input(f"Your choice [1-{len(profiles_list) + 1}]: ")
    if choice is None:
        sys.exit(1)
    try:
        idx = int(choice) - 1
    except ValueError:
        print("Invalid choice.", file=sys.stderr)
        sys.exit(1)
    if idx < 0 or idx > len(profiles_list):
        print("Invalid choice.", file=sys.stderr)
        sys.exit(1)

    if idx < len(profiles_list):
        profile = profiles_list[idx]
        print(f"\nSelected: {profile.display_name}")
        print(f"  URL: {profile.url}")
        return profile

    url = safe_input("\nEndpoint URL (e.g. https://restpki.example.com/): ")
    if not url:
        print("Error: URL is required.", file=sys.stderr)
        sys.exit(1)
    security_context = safe_input("Default security context Id (optional): ")
    try:
        return make_custom_profile(url, security_context=security_context or None)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _ping(profile: ServerProfile, token: str) -> None:
    """Step 3: check that the endpoint accepts the token. Exits on failure."""
    print(f"\nContacting {profile.url}...", end=" ", flush=True)
    try:
        client = RestPkiClient(profile.url, token, timeout=profile.timeout)
    except ConfigError as e:
        print("FAILED")
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)

    ok, info = client.ping(timeout=DEFAULT_TIMEOUT_PING)
    if ok:
        print(f"OK ({info})")
        return
    print("FAILED")
    print(f"  {info}", file=sys.stderr)
    print("\nCheck the URL and the access token and try again.", file=sys.stderr)
    sys.exit(1)


def cmd_setup(args: argparse.Namespace) -> None:
    """Interactive setup wizard: configure the endpoint and access token."""
    print("restpki Setup Wizard")
    print("=" * 40)
    print()

    try:
        current_profile = get_active_profile()
    except ConfigError as e:
        print(f"Ignoring saved configuration: {e}\n", file=sys.stderr)
        current_profile = None
    if current_profile:
        has_token = bool(get_access_token(current_profile.url))
        print("Current configuration:")
        print(f"  Profile:      {current_profile.display_name}")
        print(f"  URL:          {current_profile.url}")
        if current_profile.default_security_context:
            print(f"  Security ctx: {current_profile.default_security_context}")
        print(f"  Token:        {'saved' if has_token else 'not saved'}")
        print(f"  Config file:  {CONFIG_FILE}")
        print()

    profile = _choose_profile(getattr(args, "profile", None))

    print()
    token = prompt_access_token()

    _ping(profile, token)

    save_server_config(profile)
    print(f"\nSaved to {CONFIG_FILE}")
    print(f"  Endpoint: {profile.display_name}")
    print(f"Override anytime with {ENV_URL} / {ENV_TOKEN} env variables.")

    offer_save_token(profile.url, token)
