"""
Request exclusion rules.

Filtering is best-effort and fails open: a request is only
excluded when a configured rule matches it exactly.  Hosts and
extensions are compared as plain, case-sensitive strings, so a
rule for ``example.com`` does not cover ``sub.example.com``.
"""

from __future__ import annotations

from netmonitor.models import capture


def path_extension(path: str) -> str | None:
    """Return the text from the last ``.`` in *path* to its end.

    Example:
        >>> path_extension("/static/app.min.js")
        '.js'
        >>> path_extension("/search") is None
        True
    """
    start = path.rfind(".")
    if start < 0:
        return None
    return path[start:]


def should_exclude(
    request: capture.CapturedRequest,
    filter_config: capture.FilterConfig | None,
) -> bool:
    """Decide whether *request* is dropped from the capture results.

    The domain rule is checked first; either rule matching is
    enough to exclude.  Requests without a parsed URL or path are
    never excluded.
    """
    if filter_config is None or request.uri is None or not request.uri.path:
        return False

    if filter_config.domain and request.uri.host in filter_config.domain:
        return True

    if filter_config.types:
        extension = path_extension(request.uri.path)
        if extension is not None and extension in filter_config.types:
            return True

    return False
