"""
Capture session: records every request a page issues during one fetch.

A :class:`NetworkMonitor` subscribes to a page event source, enriches
each request (parsed URL, cookies, decoded parameters), drops the
ones excluded by the filter, and collects errors.  Results and errors
are reset at the start of every fetch and handed back as a single
:class:`~netmonitor.models.capture.FetchReport` when navigation
completes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from netmonitor.capture import events, filters
from netmonitor.models import capture
from netmonitor.utils import errors as errors_mod
from netmonitor.utils import logger, url as url_mod

log = logger.create_logger("NetworkMonitor")

ErrorCallback = Callable[[capture.CapturedError], None]
CompletionCallback = Callable[[capture.FetchReport], None]


class FetchInProgressError(RuntimeError):
    """Raised when a fetch is started while another is still running."""


class NetworkMonitor:
    """
    Captures the outbound requests of a single page, one fetch at a time.

    Args:
        source: The page event source to navigate and listen to.
        options: A :class:`MonitorOptions` or a mapping with the
            same keys, e.g. ``{"filter": {"type": [".png"]}}``.
        on_error: Optional callback invoked synchronously with every
            error as it is recorded.
    """

    def __init__(
        self,
        source: events.PageEventSource,
        options: capture.MonitorOptions | Mapping[str, Any] | None = None,
        *,
        on_error: ErrorCallback | None = None,
    ) -> None:
        if options is None:
            options = capture.MonitorOptions()
        elif not isinstance(options, capture.MonitorOptions):
            options = capture.MonitorOptions.model_validate(options)

        self._source = source
        self._options = options
        self._results: list[capture.CapturedRequest] = []
        self._errors: list[capture.CapturedError] = []
        self._fetching = False
        self.on_error = on_error

        source.on_resource_requested(self._on_resource_requested)
        source.on_resource_error(self._on_resource_error)
        source.on_resource_timeout(self._on_resource_timeout)
        source.on_error(self._on_script_error)

    # ==========================================================================
    # Accessors
    # ==========================================================================

    @property
    def options(self) -> capture.MonitorOptions:
        return self._options

    @property
    def is_fetching(self) -> bool:
        """True between the start of a fetch and delivery of its report."""
        return self._fetching

    def has_errors(self) -> bool:
        """Return True if any error was recorded during the current fetch."""
        return len(self._errors) > 0

    def get_errors(self) -> tuple[capture.CapturedError, ...]:
        """Return the errors recorded so far, in arrival order."""
        return tuple(self._errors)

    def get_results(self) -> tuple[capture.CapturedRequest, ...]:
        """Return the requests kept after filtering, in arrival order."""
        return tuple(self._results)

    def total_requests(self) -> int:
        """Number of requests kept after filtering."""
        return len(self._results)

    # ==========================================================================
    # Fetch
    # ==========================================================================

    async def fetch(
        self,
        address: str,
        on_complete: CompletionCallback | None = None,
    ) -> capture.FetchReport:
        """Load *address* and capture every request it issues.

        State from any previous fetch is discarded first.  The
        report is passed to *on_complete* exactly once and also
        returned.  Navigation failures are reported through the
        report's ``status``; they are never raised.

        Raises:
            FetchInProgressError: If this monitor is already fetching.
        """
        if self._fetching:
            raise FetchInProgressError("A fetch is already in progress for this monitor")

        self._results = []
        self._errors = []
        self._fetching = True

        try:
            log.info("Fetching", {"address": address})
            log.start_timer("fetch")
            status = await self._source.open(address)
            log.end_timer("fetch", "Navigation finished")

            report = capture.FetchReport(
                address=address,
                status=status,
                results=list(self._results),
                errors=list(self._errors),
                has_errors=self.has_errors(),
                total_requests=self.total_requests(),
            )
            log.info("Capture complete", {
                "status": status,
                "requests": report.total_requests,
                "errors": len(report.errors),
            })

            if on_complete is not None:
                on_complete(report)
            return report
        finally:
            self._fetching = False

    # ==========================================================================
    # Event Handlers
    # ==========================================================================

    def _record_error(self, error: capture.CapturedError, *, persist: bool = True) -> None:
        """Store *error* (unless told not to) and forward it to ``on_error``."""
        if persist:
            self._errors.append(error)

        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception as exc:
            # The host engine must never see an exception from a handler.
            log.error("Error callback failed", {"error": errors_mod.get_error_message(exc)})

    def _is_idle(self, event: str, detail: str) -> bool:
        """True (and the event is dropped) when no fetch is running."""
        if self._fetching:
            return False
        log.debug("Ignoring event outside a fetch", {"event": event, "detail": detail})
        return True

    def _on_resource_requested(self, request: capture.CapturedRequest) -> None:
        """Enrich, filter and store one outbound request."""
        if self._is_idle("request", request.url):
            return
        try:
            try:
                request.uri = url_mod.parse_url(request.url)
            except ValueError as exc:
                log.debug("Could not parse request URL", {"url": request.url, "error": str(exc)})

            request.cookies = list(self._source.cookies)

            if filters.should_exclude(request, self._options.filter):
                return

            uri = request.uri
            if uri is not None:
                if uri.query is not None:
                    request.data = url_mod.parse_query(uri.query)
                elif uri.path and "&" in uri.path:
                    # Some vendors put their parameters in the path.
                    request.data = url_mod.parse_query(uri.path)

            self._results.append(request)
        except Exception as exc:
            log.warn("Failed to capture request", {"url": request.url, "error": str(exc)})
            self._record_error(
                capture.CaptureError(
                    message=errors_mod.get_error_message(exc),
                    error_type=type(exc).__name__,
                    url=request.url,
                )
            )

    def _on_resource_error(self, error: capture.ResourceError) -> None:
        if self._is_idle("resource_error", error.url):
            return
        log.debug("Resource error", {"url": error.url, "error": error.error_string})
        self._record_error(error)

    def _on_resource_timeout(self, error: capture.ResourceTimeout) -> None:
        if self._is_idle("resource_timeout", error.url):
            return
        log.debug("Resource timeout", {"url": error.url})
        self._record_error(error)

    def _on_script_error(self, message: str, trace: Any) -> None:
        if self._is_idle("script_error", str(message)):
            return
        log.debug("Page script error", {"message": message})
        self._record_error(
            capture.ScriptError(message=str(message), trace=trace),
            persist=self._options.persist_script_errors,
        )
