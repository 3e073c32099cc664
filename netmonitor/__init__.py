"""Network monitor — record every request a web page issues while it loads."""

from netmonitor.capture.filters import should_exclude as should_exclude
from netmonitor.capture.monitor import (
    FetchInProgressError as FetchInProgressError,
    NetworkMonitor as NetworkMonitor,
)
from netmonitor.models.capture import (
    FetchReport as FetchReport,
    FilterConfig as FilterConfig,
    MonitorOptions as MonitorOptions,
)
