"""
URL Helpers
===========

Crawler-escape normalization, request target extraction and client identity.

Crawlers that cannot run JavaScript request ``/path?_escaped_fragment_=state``
for a page whose canonical address is ``/path#!state``. The dispatcher renders,
matches and logs the canonical form.
"""

from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

ESCAPED_FRAGMENT_PARAM = "_escaped_fragment_"
HASHBANG = "#!"


def normalize_url(url: str) -> str:
    """
    Rewrite an escaped-fragment request URL back to its hashbang form.

    Args:
        url: Request path with optional query string

    Returns:
        The URL with ``_escaped_fragment_`` moved into a ``#!`` fragment,
        or ``url`` unchanged when the parameter is absent or empty
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    fragment: Optional[str] = None
    remaining = []
    for name, value in params:
        if name == ESCAPED_FRAGMENT_PARAM:
            if fragment is None:
                fragment = value
        else:
            remaining.append((name, value))

    if not fragment:
        return url

    # urlunsplit adds the "#" separator itself
    return urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode(remaining), HASHBANG[1:] + fragment)
    )


def request_target(scope: Mapping[str, Any]) -> str:
    """Return the undecoded path and query string of an ASGI request."""
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope.get("root_path", "") + scope["path"]

    query_string = scope.get("query_string", b"")
    if query_string:
        return f"{path}?{query_string.decode('latin-1')}"
    return path


def client_identity(
    forwarded_for: Optional[str], remote_addr: Optional[str], user_agent: Optional[str]
) -> str:
    """Describe the requesting client as ``"<address> (<user agent>)"``."""
    addr = forwarded_for or remote_addr or "unknown"
    agent = user_agent or "Unknown"
    return f"{addr} ({agent})"


def join_app_url(app_url: str, url: str) -> str:
    """Resolve a request URL against the application base URL."""
    return app_url + (url[1:] if url.startswith("/") else url)
