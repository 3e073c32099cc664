"""
Streaming fetch: the same capture as :func:`runner.run_fetch`, with
errors pushed to the client over SSE as they are recorded.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator

from netmonitor import config
from netmonitor.models import capture
from netmonitor.pipeline import runner, sse_helpers
from netmonitor.utils import errors, logger

log = logger.create_logger("FetchStream")

# Outer deadline for one streamed fetch, on top of the browser's
# own navigation timeout.
STREAM_TIMEOUT_SECONDS = 300


async def fetch_url_stream(
    url: str,
    settings: config.MonitorSettings,
    filter_config: capture.FilterConfig | None = None,
) -> AsyncGenerator[str, None]:
    """Fetch *url* and yield SSE events while it loads.

    Yields ``progress`` events, one ``captureError`` event per
    recorded error, then a single ``complete`` event carrying the
    report.  A launch failure or overall timeout yields a single
    ``error`` event instead of ``complete``.
    """
    if not url:
        yield sse_helpers.format_sse_event("error", {"error": "URL is required"})
        return

    queue: asyncio.Queue[str] = asyncio.Queue()

    def forward(error: capture.CapturedError) -> None:
        queue.put_nowait(sse_helpers.format_error_event(error))

    yield sse_helpers.format_progress_event("fetch", f"Loading {url}...")
    task = asyncio.create_task(runner.run_fetch(url, settings, filter_config, on_error=forward))

    try:
        async with asyncio.timeout(STREAM_TIMEOUT_SECONDS):
            while not task.done():
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                else:
                    getter.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await getter
            while not queue.empty():
                yield queue.get_nowait()

            report = task.result()
        yield sse_helpers.format_complete_event(report)
    except TimeoutError:
        log.error("Fetch timed out", {"timeout_seconds": STREAM_TIMEOUT_SECONDS})
        yield sse_helpers.format_sse_event(
            "error", {"error": f"Fetch timed out after {STREAM_TIMEOUT_SECONDS} seconds"}
        )
    except Exception as error:
        log.error("Fetch failed with exception", {"error": errors.get_error_message(error)})
        yield sse_helpers.format_sse_event("error", {"error": errors.get_error_message(error)})
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
