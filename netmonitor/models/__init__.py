# Models package — re-export the capture models.
# Prefer importing from the submodule (e.g. netmonitor.models.capture).

from netmonitor.models.capture import (
    CaptureError as CaptureError,
    CapturedError as CapturedError,
    CapturedRequest as CapturedRequest,
    FetchReport as FetchReport,
    FilterConfig as FilterConfig,
    MonitorOptions as MonitorOptions,
    NavigationStatus as NavigationStatus,
    ParsedUrl as ParsedUrl,
    ResourceError as ResourceError,
    ResourceTimeout as ResourceTimeout,
    ScriptError as ScriptError,
)
