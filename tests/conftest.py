"""Shared fixtures for the test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest import mock

import pytest

from netmonitor.capture import events
from netmonitor.models import capture

# ── Fake host engine ────────────────────────────────────────────


class FakePageSource:
    """Scripted stand-in for a browser page.

    ``open`` replays the queued events through the registered
    handlers, in order, then returns the configured status.
    """

    def __init__(self, status: capture.NavigationStatus = "success") -> None:
        self.status: capture.NavigationStatus = status
        self.cookie_jar: list[dict[str, Any]] = []
        self.opened: list[str] = []
        self._script: list[Callable[[], None]] = []
        self.launch_error: Exception | None = None
        self.launched = False
        self.closed = False

        self.request_handler: events.RequestHandler | None = None
        self.resource_error_handler: events.ResourceErrorHandler | None = None
        self.resource_timeout_handler: events.ResourceTimeoutHandler | None = None
        self.script_error_handler: events.ScriptErrorHandler | None = None

    @property
    def cookies(self) -> list[dict[str, Any]]:
        return list(self.cookie_jar)

    def on_resource_requested(self, handler: events.RequestHandler | None) -> None:
        self.request_handler = handler

    def on_resource_error(self, handler: events.ResourceErrorHandler | None) -> None:
        self.resource_error_handler = handler

    def on_resource_timeout(self, handler: events.ResourceTimeoutHandler | None) -> None:
        self.resource_timeout_handler = handler

    def on_error(self, handler: events.ScriptErrorHandler | None) -> None:
        self.script_error_handler = handler

    # Scripting helpers

    def request(self, url: str, **fields: Any) -> FakePageSource:
        def emit() -> None:
            assert self.request_handler is not None
            self.request_handler(capture.CapturedRequest(url=url, **fields))

        self._script.append(emit)
        return self

    def resource_error(self, url: str, error_string: str = "net::ERR_FAILED") -> FakePageSource:
        def emit() -> None:
            assert self.resource_error_handler is not None
            self.resource_error_handler(capture.ResourceError(url=url, error_string=error_string))

        self._script.append(emit)
        return self

    def resource_timeout(self, url: str) -> FakePageSource:
        def emit() -> None:
            assert self.resource_timeout_handler is not None
            self.resource_timeout_handler(
                capture.ResourceTimeout(url=url, error_string="net::ERR_TIMED_OUT")
            )

        self._script.append(emit)
        return self

    def script_error(self, message: str, trace: Any = None) -> FakePageSource:
        def emit() -> None:
            assert self.script_error_handler is not None
            self.script_error_handler(message, trace)

        self._script.append(emit)
        return self

    def set_cookies(self, cookies: list[dict[str, Any]]) -> FakePageSource:
        def emit() -> None:
            self.cookie_jar = cookies

        self._script.append(emit)
        return self

    async def launch(self) -> None:
        if self.launch_error is not None:
            raise self.launch_error
        self.launched = True

    async def close(self) -> None:
        self.closed = True

    async def open(self, address: str) -> capture.NavigationStatus:
        self.opened.append(address)
        script, self._script = self._script, []
        for emit in script:
            emit()
        return self.status


@pytest.fixture()
def page_source() -> FakePageSource:
    """A fake page that navigates successfully."""
    return FakePageSource()


@pytest.fixture()
def failing_page_source() -> FakePageSource:
    """A fake page whose navigation fails."""
    return FakePageSource(status="fail")


# ── Model factories ─────────────────────────────────────────────


@pytest.fixture()
def png_filter() -> capture.FilterConfig:
    """Excludes ``.png`` paths."""
    return capture.FilterConfig.model_validate({"type": [".png"]})


@pytest.fixture()
def tracker_filter() -> capture.FilterConfig:
    """Excludes a known ad domain and stylesheets."""
    return capture.FilterConfig.model_validate(
        {"domain": ["doubleclick.net"], "type": [".css"]}
    )


@pytest.fixture()
def sample_report() -> capture.FetchReport:
    """A completed fetch with one request and one timeout."""
    return capture.FetchReport(
        address="https://example.com",
        status="success",
        results=[
            capture.CapturedRequest(
                url="https://example.com/app.js?v=2",
                id=1,
                resource_type="script",
                data={"v": "2"},
            )
        ],
        errors=[capture.ResourceTimeout(url="https://slow.example.com/pixel.gif", id=2)],
        has_errors=True,
        total_requests=1,
    )


@pytest.fixture()
def fake_browser(page_source: FakePageSource):
    """Patch BrowserSession so harness code drives *page_source* instead."""
    with mock.patch(
        "netmonitor.browser.session.BrowserSession", return_value=page_source
    ) as factory:
        yield factory
