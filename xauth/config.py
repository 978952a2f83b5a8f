"""Endpoints, the callback address and environment-driven settings."""

import os
from collections import namedtuple

from dotenv import find_dotenv, load_dotenv

from xauth.errors import ConfigError

REQUEST_TOKEN_URL = "https://api.x.com/oauth/request_token"
AUTHORIZE_URL = "https://api.x.com/oauth/authorize"
ACCESS_TOKEN_URL = "https://api.x.com/oauth/access_token"

CALLBACK_HOST = "127.0.0.1"
CALLBACK_PORT = 18923
CALLBACK_PATH = "/callback"
CALLBACK_URL = f"http://{CALLBACK_HOST}:{CALLBACK_PORT}{CALLBACK_PATH}"

Endpoints = namedtuple(
    "Endpoints", ["request_token_url", "authorize_url", "access_token_url", "callback_url"]
)

DEFAULT_ENDPOINTS = Endpoints(
    request_token_url=REQUEST_TOKEN_URL,
    authorize_url=AUTHORIZE_URL,
    access_token_url=ACCESS_TOKEN_URL,
    callback_url=CALLBACK_URL,
)

# Consumer keys plus the user's access token pair, for signed API calls.
ApiConfig = namedtuple(
    "ApiConfig", ["api_key", "api_secret", "access_token", "access_token_secret"]
)


def _require(environ, name, hint):
    value = environ.get(name, "")
    if not value:
        raise ConfigError(f"{name} not set. {hint}")
    return value


def _process_environ():
    # A .env in the working directory (or a parent) fills in unset variables.
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
    return os.environ


def load_consumer_keys(environ=None):
    """Return (api_key, api_secret) for the login flow, before user tokens exist."""
    if environ is None:
        environ = _process_environ()
    hint = "Export it or put it in .env with your app's consumer keys."
    return (
        _require(environ, "X_API_KEY", hint),
        _require(environ, "X_API_SECRET", hint),
    )


def load_config(environ=None):
    """Load consumer keys and the access token pair used for API calls."""
    if environ is None:
        environ = _process_environ()
    api_key, api_secret = load_consumer_keys(environ)
    hint = "Run `xauth login` and export the tokens it prints, or put them in .env."
    return ApiConfig(
        api_key=api_key,
        api_secret=api_secret,
        access_token=_require(environ, "X_ACCESS_TOKEN", hint),
        access_token_secret=_require(environ, "X_ACCESS_TOKEN_SECRET", hint),
    )
