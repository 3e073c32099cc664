"""
Runtime configuration for the network monitor.

Centralises environment variable names and defaults for the
browser host engine, the default request filter and the HTTP
harness.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.
"""

from __future__ import annotations

from typing import Annotated, Literal

import pydantic
import pydantic_settings
from netmonitor.models import capture

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]


def _split_csv(value: object) -> object:
    """Split a comma-separated environment value into a list."""
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
        return [item for item in items if item]
    return value


class MonitorSettings(pydantic_settings.BaseSettings):
    """Settings for a capture run.

    Attributes:
        navigation_timeout_ms: Deadline for the page load, enforced
            by the browser.
        wait_until: Load state that counts as navigation complete.
        settle_ms: Extra time to keep capturing after the load
            state is reached.
        headless: Run the browser without a window.
        browser_channel: Optional browser channel (e.g. ``chrome``).
        user_agent: Optional user agent override.
        filter_domains: Hostnames excluded by default.
        filter_types: Extensions (with leading dot) excluded by default.
        persist_script_errors: Store page script errors alongside
            resource errors instead of only forwarding them.
        host: HTTP harness bind address.
        port: HTTP harness port.
        environment: ``development`` or ``production``.
    """

    model_config = pydantic_settings.SettingsConfigDict(extra="ignore")

    navigation_timeout_ms: int = pydantic.Field(
        default=30000, gt=0, validation_alias="NETMONITOR_TIMEOUT_MS"
    )
    wait_until: WaitUntil = pydantic.Field(
        default="load", validation_alias="NETMONITOR_WAIT_UNTIL"
    )
    settle_ms: int = pydantic.Field(
        default=0, ge=0, validation_alias="NETMONITOR_SETTLE_MS"
    )
    headless: bool = pydantic.Field(
        default=True, validation_alias="NETMONITOR_HEADLESS"
    )
    browser_channel: str | None = pydantic.Field(
        default=None, validation_alias="NETMONITOR_BROWSER_CHANNEL"
    )
    user_agent: str | None = pydantic.Field(
        default=None, validation_alias="NETMONITOR_USER_AGENT"
    )
    filter_domains: Annotated[list[str] | None, pydantic_settings.NoDecode] = pydantic.Field(
        default=None, validation_alias="NETMONITOR_FILTER_DOMAINS"
    )
    filter_types: Annotated[list[str] | None, pydantic_settings.NoDecode] = pydantic.Field(
        default=None, validation_alias="NETMONITOR_FILTER_TYPES"
    )
    persist_script_errors: bool = pydantic.Field(
        default=True, validation_alias="NETMONITOR_PERSIST_SCRIPT_ERRORS"
    )
    host: str = pydantic.Field(default="0.0.0.0", validation_alias="UVICORN_HOST")
    port: int = pydantic.Field(default=3001, validation_alias="UVICORN_PORT")
    environment: str = pydantic.Field(
        default="development", validation_alias="ENVIRONMENT"
    )

    @pydantic.field_validator("filter_domains", "filter_types", mode="before")
    @classmethod
    def _parse_list(cls, value: object) -> object:
        return _split_csv(value)

    @property
    def is_production(self) -> bool:
        """True when running with ``ENVIRONMENT=production``."""
        return self.environment == "production"

    def filter_config(self) -> capture.FilterConfig | None:
        """Build the default request filter, or ``None`` when unset."""
        rules = capture.FilterConfig(
            domain=self.filter_domains or None,
            types=self.filter_types or None,
        )
        return None if rules.is_empty() else rules

    def monitor_options(
        self, filter_config: capture.FilterConfig | None = None
    ) -> capture.MonitorOptions:
        """Build monitor options, preferring an explicit *filter_config*."""
        return capture.MonitorOptions(
            filter=filter_config if filter_config is not None else self.filter_config(),
            persist_script_errors=self.persist_script_errors,
        )
