"""
Server-Sent Events formatting and report serialization helpers.

Pure functions with no side-effects.
"""

from __future__ import annotations

import json
from typing import Any

import pydantic

from netmonitor.models import capture


def to_camel_case_dict(obj: pydantic.BaseModel) -> dict[str, Any]:
    """Dump a model to a JSON-safe dict with camelCase keys."""
    return obj.model_dump(by_alias=True, mode="json")


def serialize_report(report: capture.FetchReport) -> dict[str, Any]:
    """Serialize a FetchReport for JSON or SSE transport."""
    return to_camel_case_dict(report)


def format_sse_event(event_type: str, data: dict[str, Any]) -> str:
    """Format a Server-Sent Event string."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


def format_progress_event(step: str, message: str) -> str:
    """Format a progress SSE event."""
    return format_sse_event("progress", {"step": step, "message": message})


def format_error_event(error: capture.CapturedError) -> str:
    """Format a captured error as it is forwarded during the fetch."""
    return format_sse_event("captureError", to_camel_case_dict(error))


def format_complete_event(report: capture.FetchReport) -> str:
    """Format the final report event."""
    return format_sse_event("complete", serialize_report(report))
