"""HTTPS POST helper for the token endpoints (urllib + ssl)."""

import http.client
import logging
import ssl
import urllib.error
import urllib.request

from xauth.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def post_form(url, authorization, timeout=DEFAULT_TIMEOUT):
    """POST an empty form body with an Authorization header.

    Returns ``(status, body)``. HTTP error statuses come back as values so the
    caller can report them; only transport failures raise.
    """
    headers = {
        "Authorization": authorization,
        "Content-Type": "application/x-www-form-urlencoded",
    }
    req = urllib.request.Request(url, data=b"", headers=headers, method="POST")
    ctx = ssl.create_default_context()

    try:
        with urllib.request.urlopen(req, context=ctx, timeout=timeout) as resp:
            status, body = resp.status, resp.read().decode(errors="replace")
    except urllib.error.HTTPError as e:
        status, body = e.code, (e.read().decode(errors="replace") if e.fp else "")
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise NetworkError(f"Request to {url} failed: {e}") from e

    logger.debug("POST %s -> %d", url, status)
    return status, body
