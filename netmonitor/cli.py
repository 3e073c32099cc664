"""Command-line harness for the network monitor using Typer.

Runs a single fetch, prints the report as JSON and exits.  The
exit code reflects the navigation outcome so the command can be
used from shell scripts and batch jobs.
"""

from __future__ import annotations

import asyncio
import json
from importlib import metadata
from pathlib import Path
from typing import Annotated, Optional

import dotenv
import typer
from playwright import async_api

from netmonitor import config
from netmonitor.models import capture
from netmonitor.pipeline import runner, sse_helpers
from netmonitor.utils import errors

EXIT_SUCCESS = 0
EXIT_NAVIGATION_FAILED = 1
EXIT_BROWSER_ERROR = 2

app = typer.Typer(
    name="netmonitor",
    help="Record every request a web page issues while it loads.",
    add_completion=False,
)


def _version() -> str:
    try:
        return metadata.version("netmonitor")
    except metadata.PackageNotFoundError:
        return "unknown"


@app.command(name="version")
def show_version() -> None:
    """Show version information."""
    typer.echo(f"netmonitor {_version()}")


@app.command()
def fetch(
    url: Annotated[str, typer.Argument(help="The URL to load")],
    domain: Annotated[
        Optional[list[str]],
        typer.Option("--domain", "-d", help="Exclude requests to this host (repeatable)"),
    ] = None,
    types: Annotated[
        Optional[list[str]],
        typer.Option("--type", "-t", help="Exclude paths ending in this extension, e.g. .png (repeatable)"),
    ] = None,
    timeout: Annotated[
        Optional[int],
        typer.Option("--timeout", help="Navigation timeout in milliseconds", min=1),
    ] = None,
    settle: Annotated[
        Optional[int],
        typer.Option("--settle", help="Keep capturing this many ms after load", min=0),
    ] = None,
    headful: Annotated[
        bool,
        typer.Option("--headful", help="Show the browser window"),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the report to this file instead of stdout"),
    ] = None,
) -> None:
    """Load URL once and print every request it issued."""
    dotenv.load_dotenv()
    settings = config.MonitorSettings()

    overrides: dict[str, object] = {}
    if timeout is not None:
        overrides["navigation_timeout_ms"] = timeout
    if settle is not None:
        overrides["settle_ms"] = settle
    if headful:
        overrides["headless"] = False
    if overrides:
        settings = settings.model_copy(update=overrides)

    rules = capture.FilterConfig(domain=domain or None, types=types or None)
    filter_config = None if rules.is_empty() else rules

    try:
        report = asyncio.run(runner.run_fetch(url, settings, filter_config))
    except async_api.Error as error:
        typer.echo(f"Browser error: {errors.get_error_message(error)}", err=True)
        raise typer.Exit(code=EXIT_BROWSER_ERROR)

    rendered = json.dumps(sse_helpers.serialize_report(report), indent=2)
    if output is not None:
        output.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(f"Report written to {output}", err=True)
    else:
        typer.echo(rendered)

    raise typer.Exit(code=EXIT_SUCCESS if report.status == "success" else EXIT_NAVIGATION_FAILED)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
