"""Recent news headlines for one coin."""

from __future__ import annotations

from typing import Any, List

import requests

from coinsight.infrastructure.errors import BackendHTTPError, NewsError
from coinsight.infrastructure.logging.logging import get_logger
from coinsight.models.market_models import NewsItem

log = get_logger("news_feed")

NEWS_PATH = "/api/news/tavily"


def parse_news(payload: Any) -> List[NewsItem]:
    rows = payload.get("news") if isinstance(payload, dict) else None
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise NewsError("Malformed news response: 'news' is not a list")

    items: List[NewsItem] = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("title"):
            continue
        items.append(NewsItem(title=str(row["title"]), url=str(row.get("url") or "#")))
    return items


async def fetch_news(client: Any, symbol: str, path: str = NEWS_PATH) -> List[NewsItem]:
    try:
        payload = await client.get_json(path, {"symbol": symbol})
    except (BackendHTTPError, requests.RequestException, ValueError) as e:
        log.error("news_fetch_failed", symbol=symbol, error=str(e))
        raise NewsError(f"News API Error: {e}") from e

    items = parse_news(payload)
    log.info("news_loaded", symbol=symbol, count=len(items))
    return items
