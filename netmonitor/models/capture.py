"""Pydantic models for captured requests, errors, filters and fetch reports."""

from __future__ import annotations

from typing import Annotated, Any, Literal

import pydantic
from netmonitor.utils import serialization

NavigationStatus = Literal["success", "fail"]


class _CamelModel(pydantic.BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )


# ── Filters ─────────────────────────────────────────────────────


class FilterConfig(pydantic.BaseModel):
    """Declarative exclusion rules applied to every captured request.

    ``domain`` holds hostnames (exact match against the request
    host) and ``types`` holds extensions including the leading
    dot, e.g. ``".png"``.  The extension set is read from and
    written to the ``type`` key.  ``None`` means the dimension
    excludes nothing.
    """

    model_config = pydantic.ConfigDict(frozen=True, populate_by_name=True)

    domain: frozenset[str] | None = None
    types: frozenset[str] | None = pydantic.Field(default=None, alias="type")

    def is_empty(self) -> bool:
        """Return True when no rule could ever exclude a request."""
        return not self.domain and not self.types


class MonitorOptions(pydantic.BaseModel):
    """Options accepted by :class:`NetworkMonitor`."""

    model_config = pydantic.ConfigDict(frozen=True)

    filter: FilterConfig | None = None
    persist_script_errors: bool = True


# ── Requests ────────────────────────────────────────────────────


class ParsedUrl(_CamelModel):
    """Structured components of a request URL."""

    href: str
    scheme: str | None = None
    host: str | None = None
    hostname: str | None = None
    port: int | None = None
    path: str | None = None
    query: str | None = None
    fragment: str | None = None


class CapturedRequest(_CamelModel):
    """An outbound resource request observed during a page load.

    The host engine fills in the raw request fields; ``uri``,
    ``cookies`` and ``data`` are attached by the capture session.
    """

    url: str
    id: int | None = None
    method: str = "GET"
    resource_type: str | None = None
    headers: dict[str, str] = pydantic.Field(default_factory=dict)
    post_data: str | None = None
    timestamp: str = ""

    uri: ParsedUrl | None = None
    cookies: list[dict[str, Any]] = pydantic.Field(default_factory=list)
    data: dict[str, str | list[str]] | None = None


# ── Errors ──────────────────────────────────────────────────────


class ScriptError(_CamelModel):
    """A JavaScript runtime error raised by the loaded page."""

    kind: Literal["script"] = "script"
    message: str
    trace: Any = None


class ResourceError(_CamelModel):
    """The host engine's report of a resource that failed to load."""

    kind: Literal["resource"] = "resource"
    url: str
    id: int | None = None
    error_code: int | None = None
    error_string: str | None = None
    method: str | None = None
    resource_type: str | None = None


class ResourceTimeout(ResourceError):
    """A resource load that exceeded the host engine's deadline."""

    kind: Literal["timeout"] = "timeout"  # type: ignore[assignment]


class CaptureError(_CamelModel):
    """An exception raised while processing a captured request."""

    kind: Literal["capture"] = "capture"
    message: str
    error_type: str
    url: str | None = None


CapturedError = Annotated[
    ScriptError | ResourceTimeout | ResourceError | CaptureError,
    pydantic.Field(discriminator="kind"),
]


# ── Report ──────────────────────────────────────────────────────


class FetchReport(_CamelModel):
    """Final outcome of one fetch, delivered to the completion callback."""

    address: str
    status: NavigationStatus
    results: list[CapturedRequest] = pydantic.Field(default_factory=list)
    errors: list[CapturedError] = pydantic.Field(default_factory=list)
    has_errors: bool = False
    total_requests: int = 0
