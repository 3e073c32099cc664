"""
URL parsing and query-string decoding for captured requests.
"""

from __future__ import annotations

from urllib import parse

from netmonitor.models import capture

QueryParams = dict[str, str | list[str]]


def extract_domain(url: str) -> str:
    """Extract the hostname from a URL string."""
    try:
        parsed = parse.urlsplit(url)
        return parsed.hostname or "unknown"
    except ValueError:
        return "unknown"


def parse_url(url: str) -> capture.ParsedUrl:
    """Split *url* into the components the capture engine works with.

    ``query`` is ``None`` when the URL carries no ``?`` at all and
    an empty string when the ``?`` is present but nothing follows
    it.  ``path`` never includes the query or fragment.  Hosts are
    lowercased and stripped of any ``user:pass@`` prefix but keep
    their port.

    Raises:
        ValueError: If the URL cannot be split (for example an
            unterminated IPv6 literal or a non-numeric port).
    """
    parts = parse.urlsplit(url)
    without_fragment = url.partition("#")[0]

    host = parts.netloc.rpartition("@")[2].lower()
    path = parts.path
    if not path and host:
        path = "/"

    return capture.ParsedUrl(
        href=url,
        scheme=parts.scheme or None,
        host=host or None,
        hostname=parts.hostname,
        port=parts.port,
        path=path or None,
        query=parts.query if "?" in without_fragment else None,
        fragment=parts.fragment or None,
    )


def parse_query(text: str) -> QueryParams:
    """Decode a form-urlencoded string into a parameter mapping.

    Blank values are kept, ``+`` decodes to a space and repeated
    keys are collected into a list in the order they appear.

    Example:
        >>> parse_query("a=1&b=2&a=3")
        {'a': ['1', '3'], 'b': '2'}
    """
    params: QueryParams = {}
    for key, value in parse.parse_qsl(text, keep_blank_values=True):
        existing = params.get(key)
        if existing is None:
            params[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            params[key] = [existing, value]
    return params
