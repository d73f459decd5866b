from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from requests import exceptions as req_exc

from .urls import normalize_url

logger = logging.getLogger(__name__)

TRANSIENT_HTTP_STATUSES = {429, 500, 502, 503, 504}
DEFAULT_USER_AGENT = "builder-export/0.1 (+https://pypi.org/project/builder-export/)"


def _retry_after_seconds(headers: Mapping[str, str]) -> float | None:
    retry_after = headers.get("Retry-After")
    if not retry_after:
        return None
    try:
        return float(retry_after)
    except ValueError:
        return None


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]
    fetched_at: float
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


class HttpClient:
    def __init__(
        self,
        session: requests.Session,
        *,
        timeout_s: int = 45,
        max_retries: int = 4,
        backoff_base_s: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._session = session
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._backoff_base_s = backoff_base_s
        self._user_agent = user_agent

    def get(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResult:
        normalized = normalize_url(url)
        merged = {"User-Agent": self._user_agent, "Accept": "application/json"}
        merged.update(headers or {})
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.get(
                    normalized,
                    params=dict(params) if params else None,
                    timeout=self._timeout_s,
                    headers=merged,
                )

                if (
                    resp.status_code in TRANSIENT_HTTP_STATUSES
                    and attempt < self._max_retries
                ):
                    retry_after = _retry_after_seconds(resp.headers)
                    wait_s = (
                        retry_after
                        if retry_after is not None
                        else self._backoff_base_s * (2**attempt)
                    )
                    logger.debug(
                        "transient %s from %s; retrying in %.1fs", resp.status_code, normalized, wait_s
                    )
                    time.sleep(wait_s)
                    continue

                # Non-2xx responses are returned; callers decide what they mean.
                return FetchResult(
                    url=normalized,
                    final_url=str(resp.url),
                    status_code=int(resp.status_code),
                    headers={k: str(v) for k, v in resp.headers.items()},
                    fetched_at=time.time(),
                    body=resp.content,
                )
            except req_exc.RequestException as e:
                last_error = e
                if attempt >= self._max_retries:
                    break
                time.sleep(self._backoff_base_s * (2**attempt))

        raise RuntimeError(f"Failed to fetch {normalized}: {last_error}")
