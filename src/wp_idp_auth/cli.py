# src/wp_idp_auth/cli.py

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from .domain.constants import HostRuntime
from .domain.exceptions import ConfigurationError
from .integrations.common.authenticator import create_authenticator
from .integrations.common.config import options_from_env


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wp_idp_auth",
        description="Inspect WP IDP settings bound from WpIdpAuth__* environment variables",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log key resolution and validation details to stderr.",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser(
        "authorize-url",
        help="Print the authorization URL for the configured client.",
    )
    validate = commands.add_parser(
        "validate",
        help="Validate a token against the issuer's published signing keys.",
    )
    validate.add_argument("token", help="Compact JWT to validate")

    return parser.parse_args(args=argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        authenticator = create_authenticator(options_from_env(), HostRuntime.MODERN_PIPELINE)
    except ConfigurationError as exc:
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 2

    if args.command == "authorize-url":
        sys.stdout.write(authenticator.get_authorize_url() + "\n")
        return 0

    result = authenticator.validate_token(args.token)
    json.dump(result.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0 if result.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
