"""Nonce and timestamp sources for request signing.

The signer takes these as callables so tests can pin both values.
"""

import secrets
import string
import time

NONCE_ALPHABET = string.digits + string.ascii_lowercase
NONCE_LENGTH = 32


def generate_nonce():
    """Return a 32-character nonce drawn from [0-9a-z]."""
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


def generate_timestamp():
    """Return whole seconds since the Unix epoch as a string."""
    return str(int(time.time()))
