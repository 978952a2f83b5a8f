"""RFC 3986 percent-encoding and the form-encoded bodies OAuth 1.0a uses."""

import urllib.parse


def percent_encode(value):
    """Percent-encode everything outside the unreserved set, byte-wise over UTF-8.

    ``quote`` already leaves ``A-Z a-z 0-9 - . _ ~`` alone, writes uppercase
    hex and encodes a space as ``%20``; ``safe=""`` stops it keeping ``/``.
    """
    return urllib.parse.quote(value, safe="")


def parse_form_body(body):
    """Parse ``a=1&b=2`` into a dict, splitting each pair on its first ``=``."""
    params = {}
    for pair in body.split("&"):
        name, sep, value = pair.partition("=")
        if not sep:
            continue
        params[urllib.parse.unquote_plus(name)] = urllib.parse.unquote_plus(value)
    return params
