"""
OAuth 1.0a request signing (RFC 5849, HMAC-SHA1 only).

The API rejects a bad signature with a bare 401, so every step here has to be
byte-exact: parameter normalization, the signature base string, the signing
key and the Authorization header layout.

Usage:
    header = sign("ck", "cs", "token", "token_secret", "GET",
                  "https://api.x.com/2/tweets")
"""

import base64
import hashlib
import hmac
import logging

from xauth.encoding import percent_encode
from xauth.entropy import generate_nonce, generate_timestamp
from xauth.errors import ParameterCollision

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
PROTOCOL_PARAMS = frozenset([
    "oauth_consumer_key",
    "oauth_nonce",
    "oauth_signature",
    "oauth_signature_method",
    "oauth_timestamp",
    "oauth_token",
    "oauth_version",
])


def _sorted_by_name(params):
    # Stable: pairs sharing a name keep their insertion order.
    return sorted(params, key=lambda pair: pair[0].encode("utf-8"))


def _pairs(extra_params):
    if hasattr(extra_params, "items"):
        return list(extra_params.items())
    return list(extra_params)


def normalize_parameters(params):
    """Join sorted ``name=value`` pairs, both sides percent-encoded, with ``&``."""
    return "&".join(
        f"{percent_encode(name)}={percent_encode(value)}"
        for name, value in _sorted_by_name(params)
    )


def signature_base_string(method, url, params):
    """Build ``METHOD&encode(url)&encode(normalized params)``."""
    return "&".join([
        method.upper(),
        percent_encode(url),
        percent_encode(normalize_parameters(params)),
    ])


def signing_key(consumer_secret, token_secret=""):
    """Return ``encode(consumer_secret)&encode(token_secret)``; the ``&`` is always present."""
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def hmac_sha1_signature(key, base_string):
    """Base64 HMAC-SHA1 of the base string. Keys of any length are accepted."""
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def build_header(consumer_key, consumer_secret, token, token_secret, method, url,
                 extra_params=(), nonce_source=generate_nonce,
                 clock=generate_timestamp, strict=False):
    """Return a signed ``OAuth ...`` Authorization header value.

    ``token`` is None for the request-token step; ``token_secret`` is then
    empty but still contributes the trailing ``&`` of the signing key.
    ``extra_params`` (e.g. ``oauth_callback``, ``oauth_verifier``) are signed
    and emitted in the header next to the protocol parameters. A name that
    collides with a protocol parameter is kept twice unless ``strict`` is set.
    """
    extra = _pairs(extra_params)
    if strict:
        for name, _ in extra:
            if name in PROTOCOL_PARAMS:
                raise ParameterCollision(name)

    protocol = [
        ("oauth_consumer_key", consumer_key),
        ("oauth_nonce", nonce_source()),
        ("oauth_signature_method", SIGNATURE_METHOD),
        ("oauth_timestamp", clock()),
        ("oauth_version", OAUTH_VERSION),
    ]
    if token is not None:
        protocol.append(("oauth_token", token))

    base_string = signature_base_string(method, url, protocol + extra)
    signature = hmac_sha1_signature(signing_key(consumer_secret, token_secret), base_string)
    logger.debug("Signed %s %s", method.upper(), url)

    header_params = protocol + [("oauth_signature", signature)] + extra
    fields = ", ".join(
        f'{name}="{percent_encode(value)}"' for name, value in _sorted_by_name(header_params)
    )
    return f"OAuth {fields}"


def sign(consumer_key, consumer_secret, token, token_secret, method, url,
         extra_params=(), **kwargs):
    """Sign a request for an API caller. Same contract as :func:`build_header`."""
    return build_header(consumer_key, consumer_secret, token, token_secret,
                        method, url, extra_params, **kwargs)


def sign_with_config(config, method, url, extra_params=(), **kwargs):
    """Sign an API call with the access token pair held by an ``ApiConfig``."""
    return build_header(
        config.api_key,
        config.api_secret,
        config.access_token,
        config.access_token_secret,
        method,
        url,
        extra_params,
        **kwargs,
    )
