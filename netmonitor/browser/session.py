"""
Playwright-backed host engine for the capture session.

A BrowserSession owns one browser, context and page, and translates
Playwright's page events into the callbacks of the
``PageEventSource`` protocol.  Each instance is isolated, so the HTTP
harness can run several fetches concurrently.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from playwright import async_api
from netmonitor import config
from netmonitor.capture import events
from netmonitor.models import capture
from netmonitor.utils import logger

log = logger.create_logger("BrowserSession")

# Failure texts Chromium, Firefox and WebKit use for timed-out loads.
_TIMEOUT_MARKERS = ("timed_out", "ns_error_net_timeout", "timeout", "timed out")


def is_timeout_failure(failure: str | None) -> bool:
    """Return True if a request failure text describes a timeout."""
    if not failure:
        return False
    lowered = failure.lower()
    return any(marker in lowered for marker in _TIMEOUT_MARKERS)


async def _close_quietly(what: str, closer: Callable[[], Awaitable[None]]) -> None:
    try:
        await closer()
    except Exception as exc:
        log.debug(f"{what} error (non-fatal)", {"error": str(exc)})


class BrowserSession:
    """
    Drives a headless page load and reports what the page requests.
    """

    def __init__(self, settings: config.MonitorSettings | None = None) -> None:
        """Prepare a session; call :meth:`launch` before :meth:`open`."""
        self._settings = settings or config.MonitorSettings()
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None
        self._context: async_api.BrowserContext | None = None
        self._page: async_api.Page | None = None

        self._cookies: list[dict[str, Any]] = []
        self._request_ids: dict[async_api.Request, int] = {}
        self._id_counter = itertools.count(1)

        self._request_handler: events.RequestHandler | None = None
        self._resource_error_handler: events.ResourceErrorHandler | None = None
        self._resource_timeout_handler: events.ResourceTimeoutHandler | None = None
        self._script_error_handler: events.ScriptErrorHandler | None = None

    async def __aenter__(self) -> BrowserSession:
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ==========================================================================
    # PageEventSource
    # ==========================================================================

    @property
    def cookies(self) -> list[dict[str, Any]]:
        """The most recent snapshot of the context's cookie jar."""
        return list(self._cookies)

    def on_resource_requested(self, handler: events.RequestHandler | None) -> None:
        self._request_handler = handler

    def on_resource_error(self, handler: events.ResourceErrorHandler | None) -> None:
        self._resource_error_handler = handler

    def on_resource_timeout(self, handler: events.ResourceTimeoutHandler | None) -> None:
        self._resource_timeout_handler = handler

    def on_error(self, handler: events.ScriptErrorHandler | None) -> None:
        self._script_error_handler = handler

    async def open(self, address: str) -> capture.NavigationStatus:
        """Navigate to *address* and wait for the configured load state.

        Any navigation exception (DNS failure, timeout, aborted load)
        is logged and reported as ``"fail"``.  HTTP error statuses
        still count as a completed navigation.
        """
        if not self._page:
            raise RuntimeError("No browser session active")

        settings = self._settings
        self._cookies = []
        self._request_ids.clear()
        self._id_counter = itertools.count(1)

        log.debug("Navigating", {
            "url": address,
            "waitUntil": settings.wait_until,
            "timeout": settings.navigation_timeout_ms,
        })
        try:
            response = await self._page.goto(
                address,
                wait_until=settings.wait_until,
                timeout=settings.navigation_timeout_ms,
            )
        except async_api.Error as error:
            log.warn("Navigation failed", {"url": address, "error": error.message})
            return "fail"

        if response is not None:
            log.debug("Main document loaded", {"statusCode": response.status})
        if self._page.url != address:
            log.info("Redirected", {"from": address, "to": self._page.url})

        if settings.settle_ms:
            await asyncio.sleep(settings.settle_ms / 1000)
        await self._refresh_cookies()
        return "success"

    # ==========================================================================
    # Browser Lifecycle
    # ==========================================================================

    async def launch(self) -> None:
        """Start Playwright, a browser, a context and a page."""
        settings = self._settings
        await self.close()

        log.info("Launching browser", {
            "headless": settings.headless,
            "channel": settings.browser_channel,
        })
        self._playwright = await async_api.async_playwright().start()

        chromium = self._playwright.chromium
        if settings.browser_channel:
            try:
                self._browser = await chromium.launch(
                    headless=settings.headless, channel=settings.browser_channel
                )
            except async_api.Error:
                log.warn(
                    "Browser channel not available, falling back to bundled Chromium",
                    {"channel": settings.browser_channel},
                )
        if self._browser is None:
            self._browser = await chromium.launch(headless=settings.headless)

        if settings.user_agent:
            self._context = await self._browser.new_context(user_agent=settings.user_agent)
        else:
            self._context = await self._browser.new_context()
        self._page = await self._context.new_page()

        for event, listener in self._listeners():
            self._page.on(event, listener)
        log.debug("Browser launched")

    async def close(self) -> None:
        """Detach listeners and shut down page, context, browser and Playwright.

        Teardown failures are logged at debug level; a half-closed
        browser is not an error for the caller.
        """
        page, self._page = self._page, None
        if page is not None:
            for event, listener in self._listeners():
                page.remove_listener(event, listener)

        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if context is not None:
            await _close_quietly("Context close", context.close)
        if browser is not None:
            await _close_quietly("Browser close", browser.close)
        if playwright is not None:
            await _close_quietly("Playwright stop", playwright.stop)

        self._cookies = []
        self._request_ids.clear()

    def _listeners(self) -> tuple[tuple[str, Callable[..., Any]], ...]:
        return (
            ("request", self._on_request),
            ("requestfailed", self._on_request_failed),
            ("pageerror", self._on_page_error),
            ("response", self._on_response),
        )

    # ==========================================================================
    # Playwright Event Translation
    # ==========================================================================

    def _request_id(self, request: async_api.Request) -> int:
        request_id = self._request_ids.get(request)
        if request_id is None:
            request_id = next(self._id_counter)
            self._request_ids[request] = request_id
        return request_id

    def _on_request(self, request: async_api.Request) -> None:
        """Forward an outgoing request to the capture handler."""
        if self._request_handler is None:
            return

        post_data: str | None = None
        if request.method.upper() != "GET":
            try:
                post_data = request.post_data
            except Exception:
                # Binary bodies cannot be decoded as text.
                post_data = None

        self._request_handler(
            capture.CapturedRequest(
                id=self._request_id(request),
                url=request.url,
                method=request.method,
                resource_type=request.resource_type,
                headers=dict(request.headers),
                post_data=post_data,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        )

    def _on_request_failed(self, request: async_api.Request) -> None:
        """Report a failed load as a resource error or timeout."""
        failure = request.failure
        fields: dict[str, Any] = {
            "id": self._request_id(request),
            "url": request.url,
            "error_string": failure,
            "method": request.method,
            "resource_type": request.resource_type,
        }

        if is_timeout_failure(failure):
            if self._resource_timeout_handler is not None:
                self._resource_timeout_handler(capture.ResourceTimeout(**fields))
        elif self._resource_error_handler is not None:
            self._resource_error_handler(capture.ResourceError(**fields))

    def _on_page_error(self, error: async_api.Error) -> None:
        """Report an uncaught exception thrown by page scripts."""
        if self._script_error_handler is not None:
            self._script_error_handler(error.message, error.stack)

    async def _on_response(self, _response: async_api.Response) -> None:
        """Refresh the cookie snapshot; responses may have set cookies."""
        await self._refresh_cookies()

    async def _refresh_cookies(self) -> None:
        if not self._context:
            return
        try:
            cookies = await self._context.cookies()
        except async_api.Error as exc:
            log.debug("Cookie refresh failed", {"error": exc.message})
            return
        self._cookies = [dict(cookie) for cookie in cookies]
