"""
HTTP harness — FastAPI app exposing the network monitor.

Every request runs its own isolated fetch; nothing is shared
between requests except the settings.
"""

from __future__ import annotations

import functools

import dotenv
import fastapi
import uvicorn
from fastapi.middleware import cors
from playwright import async_api
from starlette import responses

from netmonitor import config
from netmonitor.models import capture
from netmonitor.pipeline import runner, sse_helpers, stream
from netmonitor.utils import errors, logger

dotenv.load_dotenv()

log = logger.create_logger("Server")

app = fastapi.FastAPI(title="Network Monitor")

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@functools.lru_cache(maxsize=1)
def get_settings() -> config.MonitorSettings:
    """Load settings once per process."""
    return config.MonitorSettings()


def build_filter(
    domain: list[str] | None, types: list[str] | None
) -> capture.FilterConfig | None:
    """Build a request filter from query parameters, or ``None`` if both are empty."""
    rules = capture.FilterConfig(domain=domain or None, types=types or None)
    return None if rules.is_empty() else rules


# ============================================================================
# API Routes
# ============================================================================


@app.get("/api/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/api/fetch", response_model=None)
async def fetch_endpoint(
    url: str = fastapi.Query(..., min_length=1, description="The URL to load"),
    domain: list[str] | None = fastapi.Query(None, description="Hostnames to exclude"),
    types: list[str] | None = fastapi.Query(None, alias="type", description="Extensions to exclude, e.g. .png"),
    settings: config.MonitorSettings = fastapi.Depends(get_settings),
) -> dict[str, object] | responses.JSONResponse:
    """Load a URL and return every request it issued."""
    log.info("Incoming fetch request", {"url": url})
    try:
        report = await runner.run_fetch(url, settings, build_filter(domain, types))
    except async_api.Error as error:
        log.error("Browser launch failed", {"error": errors.get_error_message(error)})
        return responses.JSONResponse(
            status_code=502,
            content={"error": "BrowserError", "message": errors.get_error_message(error)},
        )
    return sse_helpers.serialize_report(report)


@app.get("/api/fetch-stream")
async def fetch_stream_endpoint(
    url: str = fastapi.Query(..., min_length=1, description="The URL to load"),
    domain: list[str] | None = fastapi.Query(None, description="Hostnames to exclude"),
    types: list[str] | None = fastapi.Query(None, alias="type", description="Extensions to exclude, e.g. .png"),
    settings: config.MonitorSettings = fastapi.Depends(get_settings),
) -> responses.StreamingResponse:
    """Load a URL, streaming errors via SSE and ending with the report."""
    log.info("Incoming streaming fetch request", {"url": url})

    return responses.StreamingResponse(
        stream.fetch_url_stream(url, settings, build_filter(domain, types)),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


# ============================================================================
# Start Server
# ============================================================================


def main() -> None:
    """Entry point for running the server."""
    settings = get_settings()
    log.section("Network Monitor Server Started")
    log.success(f"Server listening on {settings.host}:{settings.port}")
    log.info("Environment", {"env": settings.environment})

    uvicorn.run(
        "netmonitor.app:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
