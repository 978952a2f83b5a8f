"""
Command-line entry point for X (Twitter) OAuth 1.0a.

Progress goes to stderr as KEY=VALUE lines; results go to stdout.

Usage:
    xauth login
    xauth login --timeout 300
    xauth sign GET https://api.x.com/2/users/me
    xauth sign POST https://api.x.com/2/tweets --param include_entities=true
"""

import argparse
import logging
import sys

from xauth.config import load_config, load_consumer_keys
from xauth.errors import OAuthError
from xauth.flow import login
from xauth.signing import sign_with_config


def parse_param(value):
    """Split a ``name=value`` command-line parameter."""
    name, sep, val = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got {value!r}")
    return name, val


def cmd_login(args):
    """Run the browser login and print the access token pair."""
    api_key, api_secret = load_consumer_keys()
    creds = login(api_key, api_secret, callback_timeout=args.timeout)
    print(f"SUCCESS=Authenticated as @{creds.screen_name}")
    print(f"SCREEN_NAME={creds.screen_name}")
    print(f"ACCESS_TOKEN={creds.access_token}")
    print(f"ACCESS_TOKEN_SECRET={creds.access_token_secret}")


def cmd_sign(args):
    """Print a signed Authorization header for one API call."""
    config = load_config()
    header = sign_with_config(config, args.method, args.url, args.param)
    print(f"AUTHORIZATION={header}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="X OAuth 1.0a helper")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    # login
    p = sub.add_parser("login", help="Authorize this app for your account")
    p.add_argument("--timeout", type=float, default=None,
                   help="Seconds to wait for the browser callback (default: forever)")

    # sign
    p = sub.add_parser("sign", help="Print a signed Authorization header")
    p.add_argument("method", help="HTTP method, e.g. GET")
    p.add_argument("url", help="Request URL without query string")
    p.add_argument("--param", type=parse_param, action="append", default=[],
                   help="Extra signed parameter as name=value (repeatable)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cmd_map = {
        "login": cmd_login,
        "sign": cmd_sign,
    }
    try:
        cmd_map[args.command](args)
    except OAuthError as e:
        print(f"ERROR={e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
