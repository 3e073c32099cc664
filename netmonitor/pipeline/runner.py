"""
One complete fetch: launch a browser, capture a page load, clean up.

Shared by the CLI and the HTTP routes.  Each call creates its own
``BrowserSession`` and ``NetworkMonitor`` so concurrent fetches never
share state.
"""

from __future__ import annotations

import json

from netmonitor import config
from netmonitor.browser import session as browser_session
from netmonitor.capture import monitor as monitor_mod
from netmonitor.models import capture
from netmonitor.pipeline import sse_helpers
from netmonitor.utils import errors, logger
from netmonitor.utils import url as url_mod

log = logger.create_logger("Fetch")


async def run_fetch(
    address: str,
    settings: config.MonitorSettings,
    filter_config: capture.FilterConfig | None = None,
    on_error: monitor_mod.ErrorCallback | None = None,
) -> capture.FetchReport:
    """Capture every request *address* issues while it loads.

    Args:
        address: The URL to load.
        settings: Browser and default filter settings.
        filter_config: Overrides the filter from *settings* when given.
        on_error: Receives each error as it is recorded.

    Returns:
        The fetch report.

    Raises:
        playwright.async_api.Error: If the browser cannot be launched.
    """
    domain = url_mod.extract_domain(address)
    logger.clear_log_buffer()
    logger.start_log_file(domain)
    log.section(f"Fetching: {address}")

    session = browser_session.BrowserSession(settings)
    try:
        await session.launch()
        monitor = monitor_mod.NetworkMonitor(
            session, settings.monitor_options(filter_config), on_error=on_error
        )
        report = await monitor.fetch(address)
        if report.status == "success":
            log.success("Fetch complete", {"requests": report.total_requests, "errors": len(report.errors)})
        else:
            log.warn("Navigation failed", {"address": address})
        logger.save_report_file(domain, json.dumps(sse_helpers.serialize_report(report), indent=2))
        return report
    finally:
        try:
            await session.close()
        except Exception as err:
            log.warn("Error during browser cleanup", {"error": errors.get_error_message(err)})
        logger.end_log_file()
