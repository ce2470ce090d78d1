"""Fetch the latest coin listings and turn them into rank-sorted Assets."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from coinsight.infrastructure.errors import BackendHTTPError, QuoteListError
from coinsight.infrastructure.logging.logging import get_logger
from coinsight.models.market_models import Asset

log = get_logger("quotes")

QUOTES_PATH = "/api/cryptocurrency/listings/latest"


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _as_rank(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_asset(raw: Dict[str, Any]) -> Optional[Asset]:
    """Map one listing row to an Asset. Both the backend's key names and the short ones are accepted."""
    symbol = str(raw.get("symbol") or "").strip().upper()
    if not symbol:
        return None
    return Asset(
        id=str(raw.get("id") if raw.get("id") is not None else symbol),
        symbol=symbol,
        name=str(raw.get("name") or symbol),
        price=_as_float(_pick(raw, "currentPrice", "price")),
        volume_24h=_as_float(_pick(raw, "volume24h", "volume_24h")),
        change_1h=_as_float(_pick(raw, "percentChange1h", "change1h")),
        change_24h=_as_float(_pick(raw, "percentChange24h", "change24h")),
        change_7d=_as_float(_pick(raw, "percentChange7d", "change7d")),
        market_cap=_as_float(_pick(raw, "marketCap", "market_cap")),
        rank=_as_rank(_pick(raw, "cmcRank", "rank")),
        logo=raw.get("logo") or None,
    )


def sort_by_rank(assets: List[Asset]) -> List[Asset]:
    # unranked assets go last, original order kept among equals
    return sorted(assets, key=lambda a: (a.rank is None, a.rank if a.rank is not None else 0))


def parse_quotes(payload: Any) -> List[Asset]:
    """Parse a listings payload (a list, or {"data": [...]}) into unique, rank-sorted Assets."""
    rows = payload.get("data") if isinstance(payload, dict) else payload
    if not isinstance(rows, list):
        raise QuoteListError("Malformed listings response: expected a list of coins")

    assets = [a for a in (parse_asset(r) for r in rows if isinstance(r, dict)) if a is not None]

    unique: List[Asset] = []
    seen = set()
    for asset in sort_by_rank(assets):
        if asset.symbol in seen:
            log.warning("duplicate_symbol_dropped", symbol=asset.symbol, rank=asset.rank)
            continue
        seen.add(asset.symbol)
        unique.append(asset)
    return unique


async def fetch_quotes(client: Any, path: str = QUOTES_PATH) -> List[Asset]:
    """
    GET the listings endpoint and return Assets sorted by rank ascending.
    client must have get_json(path, params) -> payload. Raises QuoteListError.
    """
    try:
        payload = await client.get_json(path)
    except (BackendHTTPError, requests.RequestException, ValueError) as e:
        log.error("quotes_fetch_failed", error=str(e))
        raise QuoteListError(f"API Error: {e}") from e

    assets = parse_quotes(payload)
    log.info("quotes_loaded", count=len(assets), first=assets[0].symbol if assets else None)
    return assets
