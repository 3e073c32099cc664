"""
Capability interface between the capture session and a host engine.

The capture session never talks to a browser directly.  It
registers plain callbacks on a :class:`PageEventSource` and awaits
its :meth:`~PageEventSource.open`.  The Playwright-backed
``BrowserSession`` implements this protocol; tests substitute a
scripted fake.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from netmonitor.models import capture

RequestHandler = Callable[[capture.CapturedRequest], None]
ResourceErrorHandler = Callable[[capture.ResourceError], None]
ResourceTimeoutHandler = Callable[[capture.ResourceTimeout], None]
ScriptErrorHandler = Callable[[str, Any], None]


@runtime_checkable
class PageEventSource(Protocol):
    """A page handle that can navigate and report what it loads.

    Handlers are invoked synchronously, one at a time, in the order
    the events occur.  A real page may keep emitting events after
    :meth:`open` returns; consumers decide whether to ignore them.
    Registering a handler replaces any previously registered one.
    """

    @property
    def cookies(self) -> list[dict[str, Any]]:
        """Current cookie jar contents."""
        ...

    async def open(self, address: str) -> capture.NavigationStatus:
        """Navigate to *address* and return ``"success"`` or ``"fail"``."""
        ...

    def on_resource_requested(self, handler: RequestHandler | None) -> None: ...

    def on_resource_error(self, handler: ResourceErrorHandler | None) -> None: ...

    def on_resource_timeout(self, handler: ResourceTimeoutHandler | None) -> None: ...

    def on_error(self, handler: ScriptErrorHandler | None) -> None: ...
