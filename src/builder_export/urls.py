from __future__ import annotations

import re
from urllib.parse import ParseResult, urlencode, urlparse, urlunparse


def normalize_url(raw_url: str) -> str:
    """Normalize a URL before requesting it.

    - Lowercases scheme + hostname.
    - Strips fragments.
    - Defaults a missing scheme to https.
    """

    if "://" not in raw_url:
        raw_url = "https://" + raw_url.lstrip("/")
    parsed: ParseResult = urlparse(raw_url)
    parsed = parsed._replace(
        scheme=(parsed.scheme or "https").lower(),
        netloc=(parsed.netloc or "").lower(),
        fragment="",
    )
    return urlunparse(parsed)


def rest_url(site_url: str, route: str, params: dict[str, object] | None = None) -> str:
    """``rest_url("example.com", "wp/v2/pages", {"page": 2})``."""

    base = normalize_url(site_url).rstrip("/")
    url = f"{base}/wp-json/{route.lstrip('/')}"
    if params:
        url += "?" + urlencode({k: v for k, v in params.items() if v is not None})
    return url


def safe_filename_piece(text: str, *, max_len: int = 80) -> str:
    text = text.strip()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^A-Za-z0-9._-]+", "-", text)
    text = re.sub(r"-+", "-", text).strip("-.")
    if not text:
        return "untitled"
    return text[:max_len]
