"""
Three-legged OAuth 1.0a login: request token, browser authorization, access token.

Binds the local callback port first, asks the API for a request token,
opens the user's browser on the authorization page, waits for the one
redirect, checks it carries our request token, and exchanges the verifier
for the user's access token pair.

Usage:
    creds = login(api_key, api_secret)
    print(creds.screen_name)
"""

import asyncio
import enum
import logging
import sys
import webbrowser
from dataclasses import dataclass, field

from xauth.callback import CallbackListener
from xauth.config import DEFAULT_ENDPOINTS
from xauth.encoding import parse_form_body, percent_encode
from xauth.entropy import generate_nonce, generate_timestamp
from xauth.errors import (
    BrowserLaunchFailure,
    MalformedResponse,
    OAuthError,
    ProtocolError,
    TokenMismatch,
)
from xauth.signing import build_header
from xauth.transport import post_form

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    IDLE = "idle"
    REQUESTING_TOKEN = "requesting_token"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    EXCHANGING_TOKEN = "exchanging_token"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class Credentials:
    """What a completed login hands to the caller's persistence layer."""

    access_token: str
    access_token_secret: str = field(repr=False)
    screen_name: str


def open_browser(url):
    """Open url in the default browser, raising BrowserLaunchFailure if none starts."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise BrowserLaunchFailure(f"Could not open a browser: {e}") from e
    if not opened:
        raise BrowserLaunchFailure("No runnable browser found")


def _require(params, name, where):
    if name not in params:
        raise MalformedResponse(name, where)
    return params[name]


class ThreeLeggedFlow:
    """One login attempt. Not reusable: build a new flow to try again."""

    def __init__(self, consumer_key, consumer_secret, endpoints=DEFAULT_ENDPOINTS,
                 transport=post_form, listener_factory=CallbackListener,
                 browser=open_browser, nonce_source=generate_nonce,
                 clock=generate_timestamp, callback_timeout=None, out=None):
        self.consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self.endpoints = endpoints
        self._transport = transport
        self._listener_factory = listener_factory
        self._browser = browser
        self._nonce_source = nonce_source
        self._clock = clock
        self._callback_timeout = callback_timeout
        self._out = out if out is not None else sys.stderr
        self.state = FlowState.IDLE
        self.error = None

    def _status(self, line):
        print(line, file=self._out)
        self._out.flush()

    def _enter(self, state):
        logger.debug("Login flow: %s -> %s", self.state.value, state.value)
        self.state = state

    def _post(self, step, url, token, token_secret, extra_params):
        header = build_header(
            self.consumer_key,
            self._consumer_secret,
            token,
            token_secret,
            "POST",
            url,
            extra_params,
            nonce_source=self._nonce_source,
            clock=self._clock,
        )
        status, body = self._transport(url, header)
        if not 200 <= status < 300:
            raise ProtocolError(step, status, body)
        return parse_form_body(body)

    def _request_token(self):
        params = self._post(
            "Request token",
            self.endpoints.request_token_url,
            None,
            "",
            [("oauth_callback", self.endpoints.callback_url)],
        )
        return (
            _require(params, "oauth_token", "request token response"),
            _require(params, "oauth_token_secret", "request token response"),
        )

    def _authorize(self, request_token):
        url = f"{self.endpoints.authorize_url}?oauth_token={percent_encode(request_token)}"
        self._status(f"OAUTH_URL={url}")
        try:
            self._browser(url)
        except BrowserLaunchFailure as e:
            logger.info("%s", e)
            self._status("WARNING=Could not open a browser. Visit OAUTH_URL manually.")
        self._status("STATUS=waiting_for_callback")

    def _access_token(self, request_token, request_token_secret, verifier):
        params = self._post(
            "Access token",
            self.endpoints.access_token_url,
            request_token,
            request_token_secret,
            [("oauth_verifier", verifier)],
        )
        where = "access token response"
        return Credentials(
            access_token=_require(params, "oauth_token", where),
            access_token_secret=_require(params, "oauth_token_secret", where),
            screen_name=_require(params, "screen_name", where),
        )

    def run(self):
        """Drive the login to COMPLETE and return Credentials, or raise."""
        if self.state is not FlowState.IDLE:
            raise RuntimeError(f"Login flow already {self.state.value}")

        try:
            self._enter(FlowState.REQUESTING_TOKEN)
            with self._listener_factory(timeout=self._callback_timeout) as listener:
                self._status("STATUS=requesting_token")
                request_token, request_token_secret = self._request_token()

                self._enter(FlowState.AWAITING_AUTHORIZATION)
                self._authorize(request_token)
                callback = listener.wait()
                if callback.oauth_token != request_token:
                    raise TokenMismatch()

                self._enter(FlowState.EXCHANGING_TOKEN)
                self._status("STATUS=exchanging_token")
                credentials = self._access_token(
                    request_token, request_token_secret, callback.oauth_verifier
                )
        except OAuthError as e:
            self._enter(FlowState.FAILED)
            self.error = str(e)
            raise
        finally:
            self._consumer_secret = None

        self._enter(FlowState.COMPLETE)
        return credentials


def login(consumer_key, consumer_secret, **kwargs):
    """Run a full three-legged login and return the user's Credentials."""
    return ThreeLeggedFlow(consumer_key, consumer_secret, **kwargs).run()


async def login_async(consumer_key, consumer_secret, **kwargs):
    """Run :func:`login` on a worker thread so the event loop keeps running.

    Cancelling the awaiting task does not interrupt the blocked accept; pass
    ``callback_timeout`` to bound the wait.
    """
    return await asyncio.to_thread(login, consumer_key, consumer_secret, **kwargs)
