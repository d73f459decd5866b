"""Read native block content from a site's WordPress REST API."""

from __future__ import annotations

import logging
from typing import Any

from .convert.blocks import Block, parse_blocks
from .http_client import FetchResult, HttpClient
from .urls import rest_url

logger = logging.getLogger(__name__)

PER_PAGE = 100
PAGES_ROUTE = "wp/v2/pages"


class WordPressApiError(RuntimeError):
    pass


class _Unauthorized(Exception):
    pass


def _total_pages(res: FetchResult) -> int:
    for key, value in res.headers.items():
        if key.lower() == "x-wp-totalpages":
            try:
                return max(1, int(value))
            except ValueError:
                return 1
    return 1


def _json_list(res: FetchResult, url: str) -> list[dict[str, Any]]:
    try:
        data = res.json()
    except (ValueError, UnicodeDecodeError) as e:
        raise WordPressApiError(f"Invalid JSON from {url}") from e
    if not isinstance(data, list):
        raise WordPressApiError(f"Expected a list from {url}, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


class WordPressClient:
    def __init__(self, http: HttpClient) -> None:
        self.http = http

    def site_info(self, site_url: str) -> dict[str, Any] | None:
        """The ``/wp-json/`` index, or None when the site exposes no v2 API."""

        url = rest_url(site_url, "")
        res = self.http.get(url)
        if not res.ok:
            return None
        try:
            data = res.json()
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(data, dict) or "wp/v2" not in (data.get("namespaces") or []):
            return None
        return data

    def fetch_pages(self, site_url: str, max_pages: int | None = None) -> list[dict[str, Any]]:
        """All pages, raw content included when the API allows ``context=edit``.

        An unauthenticated site answers 401 to ``context=edit``; in that case
        pagination restarts once on the public view.
        """

        try:
            pages = self._paginate(site_url, max_pages, context="edit")
        except _Unauthorized:
            logger.info("context=edit refused by %s; using the public view", site_url)
            pages = self._paginate(site_url, max_pages, context=None)
        logger.info("fetched %d page(s) from %s", len(pages), site_url)
        return pages

    def _paginate(
        self, site_url: str, max_pages: int | None, *, context: str | None
    ) -> list[dict[str, Any]]:
        pages: list[dict[str, Any]] = []
        page = 1
        while max_pages is None or len(pages) < max_pages:
            url = rest_url(
                site_url, PAGES_ROUTE, {"per_page": PER_PAGE, "page": page, "context": context}
            )
            res = self.http.get(url)
            if res.status_code == 401 and context is not None:
                raise _Unauthorized(url)
            if res.status_code == 400 and page > 1:
                # Past the last page.
                break
            if not res.ok:
                raise WordPressApiError(f"HTTP {res.status_code} from {url}")
            batch = _json_list(res, url)
            if not batch:
                break
            pages.extend(batch)
            if page >= _total_pages(res):
                break
            page += 1
        return pages if max_pages is None else pages[:max_pages]

    def fetch_page_blocks(self, site_url: str, slug: str) -> list[Block]:
        url = rest_url(site_url, PAGES_ROUTE, {"slug": slug, "context": "edit"})
        res = self.http.get(url)
        if res.status_code == 401:
            url = rest_url(site_url, PAGES_ROUTE, {"slug": slug})
            res = self.http.get(url)
        if not res.ok:
            raise WordPressApiError(f"HTTP {res.status_code} from {url}")
        items = _json_list(res, url)
        if not items:
            raise WordPressApiError(f"No page with slug {slug!r} at {site_url}")

        content = items[0].get("content") or {}
        raw = content.get("raw") if isinstance(content, dict) else None
        if not raw:
            raw = content.get("rendered", "") if isinstance(content, dict) else ""
            logger.debug("no raw content for %s; parsing rendered HTML", slug)
        return parse_blocks(raw or "")

