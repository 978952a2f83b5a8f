"""
Single-shot loopback HTTP listener for the OAuth authorization redirect.

The browser is sent to http://127.0.0.1:18923/callback?oauth_token=...&oauth_verifier=...
once the user approves the app. We accept exactly that one request, answer it
with a small HTML page and release the port.
"""

import http.server
import logging
import urllib.parse
from collections import namedtuple

from xauth.config import CALLBACK_HOST, CALLBACK_PORT
from xauth.encoding import parse_form_body
from xauth.errors import MalformedResponse, NetworkError

logger = logging.getLogger(__name__)

CallbackResult = namedtuple("CallbackResult", ["oauth_token", "oauth_verifier"])

SUCCESS_PAGE = b"""<!DOCTYPE html>
<html><body style="font-family:system-ui;text-align:center;padding:60px">
<h1>Authorized!</h1>
<p>You can close this tab and return to the terminal.</p>
</body></html>"""


class OAuthCallbackHandler(http.server.BaseHTTPRequestHandler):
    """Handle the OAuth redirect callback."""

    def log_message(self, format, *args):
        pass  # Request lines carry the verifier; keep them out of logs

    def _reply(self, status, body):
        # The outcome is already recorded; a browser that hung up loses only the page.
        try:
            self.send_response(status)
            self.send_header("Content-Type", "text/html")
            self.send_header("Content-Length", str(len(body)))
            self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(body)
        except OSError as e:
            logger.debug("Could not answer callback request: %s", e)

    def _fail(self, error):
        self.server.callback_error = error
        self._reply(400, f"<h2>Authorization failed</h2><p>{error}</p>".encode())

    def do_GET(self):
        query = urllib.parse.urlsplit(self.path).query
        if not query:
            self._fail(MalformedResponse("query string", "callback"))
            return

        params = parse_form_body(query)
        for field in ("oauth_token", "oauth_verifier"):
            if field not in params:
                self._fail(MalformedResponse(field, "callback"))
                return

        self.server.callback_result = CallbackResult(
            params["oauth_token"], params["oauth_verifier"]
        )
        self._reply(200, SUCCESS_PAGE)


class CallbackListener:
    """Bind the callback port now; serve one redirect on :meth:`wait`.

    Binding happens in the constructor so a port already held by another
    login fails before any request leaves the machine. ``timeout`` is in
    seconds; None waits forever.
    """

    def __init__(self, host=CALLBACK_HOST, port=CALLBACK_PORT, timeout=None):
        try:
            self._server = http.server.HTTPServer((host, port), OAuthCallbackHandler)
        except OSError as e:
            raise NetworkError(f"Failed to bind local server on port {port}: {e}") from e
        self._server.timeout = timeout
        self._server.callback_result = None
        self._server.callback_error = None
        self._server.handle_timeout = self._on_timeout
        self._timed_out = False

    @property
    def port(self):
        return self._server.server_address[1]

    def _on_timeout(self):
        self._timed_out = True

    def wait(self):
        """Block until one request arrives; return its CallbackResult."""
        logger.debug("Waiting for callback on port %d", self.port)
        try:
            self._server.handle_request()
        finally:
            self.close()

        if self._timed_out:
            raise NetworkError(
                f"No authorization callback within {self._server.timeout} seconds"
            )
        if self._server.callback_error is not None:
            raise self._server.callback_error
        if self._server.callback_result is None:
            raise MalformedResponse("request line", "callback")
        return self._server.callback_result

    def close(self):
        self._server.server_close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
