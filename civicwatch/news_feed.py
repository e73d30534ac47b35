from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from .config import Settings
from .errors import FetchError
from .models import RawItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedConfig:
    url: str
    api_key: str
    category: str = "politics"
    country: str = "US"
    timeout_s: float = 25.0
    user_agent: str = "civicwatch/1.0"

    @classmethod
    def from_settings(cls, cfg: Settings) -> "FeedConfig":
        return cls(
            url=cfg.news_api_url,
            api_key=cfg.news_api_key,
            category=cfg.news_category,
            country=cfg.news_country,
            timeout_s=cfg.request_timeout,
            user_agent=cfg.user_agent,
        )


class NewsFeedClient:
    """Reads the latest news for a fixed category/country from the remote feed.

    One GET per call, no retries: a failed fetch is retried by the next
    scheduled tick.
    """

    def __init__(self, cfg: FeedConfig, client: Optional[httpx.Client] = None):
        self.cfg = cfg
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(cfg.timeout_s, connect=cfg.timeout_s),
            headers={"User-Agent": cfg.user_agent},
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self) -> List[RawItem]:
        if not self.cfg.api_key:
            raise FetchError("news feed api key is not configured (NEWS_API_KEY)")

        params = {"category": self.cfg.category, "country": self.cfg.country}
        try:
            resp = self._client.get(self.cfg.url, params=params, headers={"Authorization": self.cfg.api_key})
        except httpx.HTTPError as e:
            raise FetchError(f"news feed request failed: {e.__class__.__name__}: {e}") from e

        if not resp.is_success:
            raise FetchError(f"news feed returned HTTP {resp.status_code}: {(resp.text or '')[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise FetchError(f"news feed returned non-JSON response: {e}") from e

        if not isinstance(data, dict):
            raise FetchError("news feed returned unexpected JSON shape")
        status = data.get("status")
        if status is not None and status != "ok":
            raise FetchError(f"news feed reported status={status!r}: {data.get('msg') or data.get('message') or ''}".rstrip(": "))
        items = data.get("news")
        if not isinstance(items, list):
            raise FetchError("news feed payload has no 'news' list")

        logger.info("fetched %d items category=%s country=%s", len(items), self.cfg.category, self.cfg.country)
        return items
