"""Shared serialization helpers for camelCase conversion.

Provides the ``snake_to_camel`` alias generator used by the
capture models and the SSE event builders.
"""

from __future__ import annotations


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"has_errors"``.

    Returns:
        The camelCase equivalent, e.g. ``"hasErrors"``.
    """
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
