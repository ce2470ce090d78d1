"""Ask the backend's AI endpoint for a narrative summary of one coin."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import requests

from coinsight.infrastructure.errors import AnalysisError, BackendHTTPError
from coinsight.infrastructure.logging.logging import get_logger
from coinsight.models.market_models import Asset, IndicatorSnapshot, NewsItem

log = get_logger("ai_analysis")

ANALYZE_PATH = "/api/ai/analyze-crypto"


def build_analysis_payload(
    asset: Asset,
    indicators: IndicatorSnapshot,
    news: Sequence[NewsItem],
) -> Dict[str, Any]:
    """Request body for the analyze endpoint.

    Indicator values go out rounded ("N/A" when unavailable); `volume`
    is the asset's 24h volume from the quote list.
    """
    shown = indicators.display_values()
    return {
        "symbol": asset.symbol,
        "currentPrice": asset.price or 0,
        "percentChange24h": asset.change_24h or 0,
        "marketCap": asset.market_cap or 0,
        "rsi": shown["rsi"],
        "macd": shown["macd"],
        "sma50": shown["sma50"],
        "sma200": shown["sma200"],
        "volume": asset.volume_24h or 0,
        "news": [n.to_dict() for n in news],
    }


async def fetch_analysis(
    client: Any,
    asset: Asset,
    indicators: IndicatorSnapshot,
    news: Sequence[NewsItem] = (),
    path: str = ANALYZE_PATH,
) -> str:
    body = build_analysis_payload(asset, indicators, list(news))
    try:
        payload = await client.post_json(path, body)
    except (BackendHTTPError, requests.RequestException, ValueError) as e:
        log.error("analysis_fetch_failed", symbol=asset.symbol, error=str(e))
        raise AnalysisError(f"AI Analysis API Error: {e}") from e

    analysis = payload.get("analysis") if isinstance(payload, dict) else None
    if not isinstance(analysis, str):
        raise AnalysisError("AI Analysis API Error: response has no 'analysis' text")

    log.info("analysis_loaded", symbol=asset.symbol, chars=len(analysis))
    return analysis


def news_context(news: List[NewsItem], news_symbol: str, symbol: str) -> List[NewsItem]:
    """News to embed in an analysis request: only items already loaded for the same symbol."""
    return list(news) if news_symbol == symbol else []
