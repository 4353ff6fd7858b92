from __future__ import annotations

import re
from urllib.parse import urlsplit

HTTP_URL_REGEX = re.compile(r"^(http|https)://", re.IGNORECASE)


def is_http_url(value: str) -> bool:
    """Return True when ``value`` is an http or https URL with a host.

    >>> is_http_url("https://example.com")
    True
    >>> is_http_url("file://path-to-file")
    False
    """
    if not isinstance(value, str) or not HTTP_URL_REGEX.match(value.strip()):
        return False
    try:
        parts = urlsplit(value.strip())
        # .port raises on malformed ports like "host:abc"
        parts.port
    except ValueError:
        return False
    return bool(parts.hostname)
