"""Tests for the HTTP client and the WordPress REST reader."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from builder_export.http_client import HttpClient
from builder_export.urls import normalize_url, rest_url
from builder_export.wp_api import WordPressApiError, WordPressClient

SITE = "https://example.com"


def _resp(status: int, body: Any = None, headers: dict[str, str] | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.url = SITE
    resp.content = b"" if body is None else json.dumps(body).encode("utf-8")
    return resp


def _client(*responses: MagicMock) -> tuple[WordPressClient, MagicMock]:
    session = MagicMock()
    session.get.side_effect = list(responses)
    return WordPressClient(HttpClient(session, max_retries=0)), session


def _urls(session: MagicMock) -> list[str]:
    return [c.args[0] for c in session.get.call_args_list]


# ============================================================================
# URLs
# ============================================================================


class TestUrls:
    """Tests for URL helpers."""

    def test_normalize(self) -> None:
        """Scheme defaults to https, host is lowercased, fragment dropped."""
        assert normalize_url("Example.COM/About#team") == "https://example.com/About"

    def test_rest_url(self) -> None:
        """None parameters are left out of the query."""
        url = rest_url("example.com/", "wp/v2/pages", {"page": 2, "context": None})
        assert url == "https://example.com/wp-json/wp/v2/pages?page=2"
        assert rest_url(SITE, "") == "https://example.com/wp-json/"


# ============================================================================
# HttpClient
# ============================================================================


class TestHttpClient:
    """Tests for retries and result wrapping."""

    def test_retries_transient_status(self) -> None:
        """A 503 is retried after the Retry-After delay."""
        session = MagicMock()
        session.get.side_effect = [_resp(503, headers={"Retry-After": "2"}), _resp(200, {"ok": True})]
        http = HttpClient(session, max_retries=2)
        with patch("builder_export.http_client.time.sleep") as sleep:
            res = http.get(SITE)
        sleep.assert_called_once_with(2.0)
        assert res.ok
        assert res.json() == {"ok": True}

    def test_exponential_backoff(self) -> None:
        """Without Retry-After the wait doubles per attempt."""
        session = MagicMock()
        session.get.side_effect = [_resp(502), _resp(502), _resp(200, [])]
        http = HttpClient(session, max_retries=3, backoff_base_s=0.5)
        with patch("builder_export.http_client.time.sleep") as sleep:
            http.get(SITE)
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_last_transient_status_is_returned(self) -> None:
        """Once retries run out the final response comes back as is."""
        session = MagicMock()
        session.get.side_effect = [_resp(429), _resp(429)]
        http = HttpClient(session, max_retries=1)
        with patch("builder_export.http_client.time.sleep"):
            res = http.get(SITE)
        assert res.status_code == 429
        assert not res.ok

    def test_network_errors_exhaust(self) -> None:
        """Connection failures raise after the last retry."""
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("boom")
        http = HttpClient(session, max_retries=2)
        with patch("builder_export.http_client.time.sleep") as sleep:
            with pytest.raises(RuntimeError, match="boom"):
                http.get(SITE)
        assert sleep.call_count == 2
        assert session.get.call_count == 3

    def test_headers_merged(self) -> None:
        """Caller headers are added to the defaults."""
        session = MagicMock()
        session.get.return_value = _resp(200, [])
        HttpClient(session, user_agent="ua/1").get(SITE, headers={"X-Test": "1"})
        headers = session.get.call_args.kwargs["headers"]
        assert headers["User-Agent"] == "ua/1"
        assert headers["X-Test"] == "1"


# ============================================================================
# WordPressClient
# ============================================================================


class TestSiteInfo:
    """Tests for REST API discovery."""

    def test_v2_site(self) -> None:
        """A site exposing wp/v2 returns its index."""
        client, _ = _client(_resp(200, {"name": "Demo", "namespaces": ["oembed/1.0", "wp/v2"]}))
        assert client.site_info(SITE)["name"] == "Demo"

    def test_missing_api(self) -> None:
        """Errors and indexes without wp/v2 mean no API."""
        client, _ = _client(_resp(404), _resp(200, {"namespaces": ["oembed/1.0"]}))
        assert client.site_info(SITE) is None
        assert client.site_info(SITE) is None


class TestFetchPages:
    """Tests for paginated page listing."""

    def test_pagination(self) -> None:
        """Pages are followed until the total page count."""
        client, session = _client(
            _resp(200, [{"id": 1}, {"id": 2}], {"x-wp-totalpages": "2"}),
            _resp(200, [{"id": 3}], {"x-wp-totalpages": "2"}),
        )
        pages = client.fetch_pages(SITE)
        assert [p["id"] for p in pages] == [1, 2, 3]
        assert _urls(session) == [
            f"{SITE}/wp-json/wp/v2/pages?per_page=100&page=1&context=edit",
            f"{SITE}/wp-json/wp/v2/pages?per_page=100&page=2&context=edit",
        ]

    def test_unauthorized_falls_back_to_public_view(self) -> None:
        """A 401 on the edit context restarts without it."""
        client, session = _client(_resp(401), _resp(200, [{"id": 7}]))
        pages = client.fetch_pages(SITE)
        assert [p["id"] for p in pages] == [7]
        assert _urls(session)[1] == f"{SITE}/wp-json/wp/v2/pages?per_page=100&page=1"

    def test_bad_request_past_last_page(self) -> None:
        """A 400 after the first page ends pagination."""
        client, _ = _client(
            _resp(200, [{"id": 1}], {"X-WP-TotalPages": "3"}),
            _resp(400, {"code": "rest_post_invalid_page_number"}),
        )
        assert [p["id"] for p in client.fetch_pages(SITE)] == [1]

    def test_empty_batch_stops(self) -> None:
        """An empty page ends pagination."""
        client, session = _client(_resp(200, [], {"X-WP-TotalPages": "5"}))
        assert client.fetch_pages(SITE) == []
        assert session.get.call_count == 1

    def test_max_pages(self) -> None:
        """The result is cut at max_pages."""
        client, _ = _client(_resp(200, [{"id": 1}, {"id": 2}]))
        assert [p["id"] for p in client.fetch_pages(SITE, max_pages=1)] == [1]

    def test_http_error(self) -> None:
        """Other failures raise WordPressApiError."""
        client, _ = _client(_resp(404))
        with pytest.raises(WordPressApiError, match="HTTP 404"):
            client.fetch_pages(SITE)

    def test_non_list_payload(self) -> None:
        """An object where a list is expected is an error."""
        client, _ = _client(_resp(200, {"code": "oops"}))
        with pytest.raises(WordPressApiError, match="Expected a list"):
            client.fetch_pages(SITE)


class TestFetchPageBlocks:
    """Tests for reading one page's blocks."""

    RAW = "<!-- wp:paragraph -->\n<p>Hi</p>\n<!-- /wp:paragraph -->"

    def test_raw_content(self) -> None:
        """Raw block markup is parsed into blocks."""
        client, session = _client(_resp(200, [{"content": {"raw": self.RAW, "rendered": "<p>Hi</p>"}}]))
        blocks = client.fetch_page_blocks(SITE, "home")
        assert [b.name for b in blocks] == ["core/paragraph"]
        assert _urls(session) == [f"{SITE}/wp-json/wp/v2/pages?slug=home&context=edit"]

    def test_rendered_fallback(self) -> None:
        """Without raw content the rendered HTML is used."""
        client, session = _client(_resp(401), _resp(200, [{"content": {"rendered": "<p>Hi</p>"}}]))
        blocks = client.fetch_page_blocks(SITE, "home")
        assert [b.name for b in blocks] == ["core/freeform"]
        assert _urls(session)[1] == f"{SITE}/wp-json/wp/v2/pages?slug=home"

    def test_unknown_slug(self) -> None:
        """An empty result names the slug."""
        client, _ = _client(_resp(200, []))
        with pytest.raises(WordPressApiError, match="'missing'"):
            client.fetch_page_blocks(SITE, "missing")
