"""Tests for netmonitor.utils.url — URL parsing and query decoding."""

from __future__ import annotations

import pytest

from netmonitor.utils.url import extract_domain, parse_query, parse_url

# ── extract_domain ──────────────────────────────────────────────


class TestExtractDomain:
    """Tests for extract_domain()."""

    def test_simple_url(self) -> None:
        assert extract_domain("https://example.com/path") == "example.com"

    def test_url_with_port(self) -> None:
        assert extract_domain("https://example.com:8080/path") == "example.com"

    def test_url_without_scheme(self) -> None:
        assert extract_domain("example.com") == "unknown"

    def test_empty_string_returns_unknown(self) -> None:
        assert extract_domain("") == "unknown"

    def test_broken_ipv6_returns_unknown(self) -> None:
        assert extract_domain("http://[::1/path") == "unknown"


# ── parse_url ───────────────────────────────────────────────────


class TestParseUrl:
    """Tests for parse_url()."""

    def test_components(self) -> None:
        uri = parse_url("https://cdn.example.com/js/app.js?v=2#top")
        assert uri.scheme == "https"
        assert uri.host == "cdn.example.com"
        assert uri.hostname == "cdn.example.com"
        assert uri.path == "/js/app.js"
        assert uri.query == "v=2"
        assert uri.fragment == "top"

    def test_href_is_original_url(self) -> None:
        url = "https://example.com/a?b=c"
        assert parse_url(url).href == url

    def test_no_question_mark_means_no_query(self) -> None:
        assert parse_url("https://example.com/search").query is None

    def test_bare_question_mark_is_empty_query(self) -> None:
        assert parse_url("https://example.com/search?").query == ""

    def test_question_mark_in_fragment_is_not_a_query(self) -> None:
        assert parse_url("https://example.com/page#frag?x=1").query is None

    def test_host_keeps_port(self) -> None:
        uri = parse_url("http://example.com:8080/x")
        assert uri.host == "example.com:8080"
        assert uri.hostname == "example.com"
        assert uri.port == 8080

    def test_host_drops_credentials_and_lowercases(self) -> None:
        assert parse_url("http://user:pw@Example.COM/x").host == "example.com"

    def test_root_path_when_missing(self) -> None:
        assert parse_url("http://example.com").path == "/"

    def test_data_url_has_no_host(self) -> None:
        uri = parse_url("data:image/png;base64,AAAA")
        assert uri.host is None
        assert uri.path == "image/png;base64,AAAA"

    @pytest.mark.parametrize("url", ["http://[::1/path", "http://example.com:port/"])
    def test_unparseable_url_raises(self, url: str) -> None:
        with pytest.raises(ValueError):
            parse_url(url)


# ── parse_query ─────────────────────────────────────────────────


class TestParseQuery:
    """Tests for parse_query()."""

    def test_simple_pairs(self) -> None:
        assert parse_query("a=1&b=2") == {"a": "1", "b": "2"}

    def test_repeated_keys_become_list(self) -> None:
        assert parse_query("a=1&b=2&a=3") == {"a": ["1", "3"], "b": "2"}

    def test_blank_values_kept(self) -> None:
        assert parse_query("flag&x=") == {"flag": "", "x": ""}

    def test_plus_and_percent_decoding(self) -> None:
        assert parse_query("q=hello+world&r=%2Fpath") == {"q": "hello world", "r": "/path"}

    def test_value_may_contain_equals(self) -> None:
        assert parse_query("token=abc=def") == {"token": "abc=def"}

    def test_empty_string(self) -> None:
        assert parse_query("") == {}

    def test_path_shaped_input(self) -> None:
        assert parse_query("/collect/foo&bar=1") == {"/collect/foo": "", "bar": "1"}
