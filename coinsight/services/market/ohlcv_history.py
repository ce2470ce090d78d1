"""Fetch OHLCV history from the backend and turn it into an ordered close series."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from coinsight.infrastructure.errors import BackendHTTPError, DetailFetchError
from coinsight.infrastructure.logging.logging import get_logger
from coinsight.models.market_models import PricePoint

log = get_logger("ohlcv_history")

OHLCV_PATH = "/api/cryptocurrency/ohlcv/twelvedata-historical"


def _parse_datetime(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        # out-of-range epochs (e.g. milliseconds) are unusable rows, not errors
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    # naive and aware values must stay comparable when sorting
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_ohlcv_values(values: List[Dict[str, Any]]) -> List[PricePoint]:
    """
    Turn [{datetime, open, high, low, close, volume}, ...] into PricePoints sorted by time.
    Input order is not trusted. Rows without a usable datetime or a finite close are skipped;
    on duplicate timestamps the later row wins.
    """
    by_time: Dict[datetime, float] = {}
    skipped = 0
    for row in values:
        if not isinstance(row, dict):
            skipped += 1
            continue
        ts = _parse_datetime(row.get("datetime"))
        try:
            close = float(row.get("close"))
        except (TypeError, ValueError):
            close = None
        if ts is None or close is None or not math.isfinite(close):
            skipped += 1
            continue
        by_time[ts] = close

    if skipped:
        log.debug("ohlcv_rows_skipped", skipped=skipped)

    return [PricePoint(timestamp=ts, close=by_time[ts]) for ts in sorted(by_time)]


async def fetch_price_history(
    client: Any,
    symbol: str,
    interval: str = "1day",
    outputsize: int = 200,
    path: str = OHLCV_PATH,
) -> List[PricePoint]:
    """
    GET OHLCV history for `symbol`. An empty or missing `values` list is a valid
    "no data" answer and returns []. Transport and status errors raise DetailFetchError.
    """
    params = {"symbol": symbol, "interval": interval, "outputsize": outputsize}
    try:
        payload = await client.get_json(path, params)
    except (BackendHTTPError, requests.RequestException, ValueError) as e:
        log.error("ohlcv_fetch_failed", symbol=symbol, error=str(e))
        raise DetailFetchError(f"OHLCV API Error: {e}") from e

    values = payload.get("values") if isinstance(payload, dict) else None
    if not values:
        log.info("ohlcv_empty", symbol=symbol)
        return []

    if not isinstance(values, list):
        raise DetailFetchError("Malformed OHLCV response: 'values' is not a list")

    points = parse_ohlcv_values(values)
    log.info("ohlcv_loaded", symbol=symbol, rows=len(values), points=len(points))
    return points
