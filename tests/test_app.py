"""Tests for netmonitor.app — HTTP routes via the FastAPI test client."""

from __future__ import annotations

from collections.abc import Iterator
from unittest import mock

import pytest
from fastapi.testclient import TestClient
from playwright import async_api

from netmonitor import app as app_mod
from netmonitor import config


@pytest.fixture()
def client() -> Iterator[TestClient]:
    with mock.patch.dict("os.environ", {}, clear=True):
        settings = config.MonitorSettings()
    app_mod.app.dependency_overrides[app_mod.get_settings] = lambda: settings
    try:
        yield TestClient(app_mod.app)
    finally:
        app_mod.app.dependency_overrides.clear()


class TestBuildFilter:
    def test_empty(self) -> None:
        assert app_mod.build_filter(None, []) is None

    def test_values(self) -> None:
        rules = app_mod.build_filter(["ads.example.com"], None)
        assert rules is not None
        assert rules.domain == frozenset({"ads.example.com"})
        assert rules.types is None


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestFetch:
    def test_returns_camel_case_report(self, client, page_source, fake_browser) -> None:
        page_source.request("https://example.com/app.js?v=2", resource_type="script")

        response = client.get("/api/fetch", params={"url": "https://example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["totalRequests"] == 1
        assert body["hasErrors"] is False
        assert body["results"][0]["resourceType"] == "script"
        assert body["results"][0]["data"] == {"v": "2"}

    def test_query_filters(self, client, page_source, fake_browser) -> None:
        page_source.request("https://example.com/logo.png")
        page_source.request("https://ads.example.net/pixel")
        page_source.request("https://example.com/app.js")

        response = client.get(
            "/api/fetch",
            params=[("url", "https://example.com"), ("type", ".png"), ("domain", "ads.example.net")],
        )

        assert [r["url"] for r in response.json()["results"]] == ["https://example.com/app.js"]

    def test_navigation_failure_is_reported(self, client, page_source, fake_browser) -> None:
        page_source.status = "fail"
        response = client.get("/api/fetch", params={"url": "https://nowhere.invalid"})
        assert response.status_code == 200
        assert response.json()["status"] == "fail"

    def test_browser_error_is_502(self, client, page_source, fake_browser) -> None:
        page_source.launch_error = async_api.Error("Executable doesn't exist")
        response = client.get("/api/fetch", params={"url": "https://example.com"})
        assert response.status_code == 502
        assert response.json()["error"] == "BrowserError"

    def test_missing_url_is_rejected(self, client) -> None:
        assert client.get("/api/fetch").status_code == 422


class TestFetchStream:
    def test_streams_errors_then_report(self, client, page_source, fake_browser) -> None:
        page_source.request("https://example.com/app.js")
        page_source.resource_timeout("https://slow.example.com/pixel.gif")

        response = client.get("/api/fetch-stream", params={"url": "https://example.com"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        body = response.text
        assert body.index("event: captureError") < body.index("event: complete")
        assert '"kind": "timeout"' in body
