"""Market domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Asset:
    id: str
    symbol: str
    name: str
    price: float = 0.0
    volume_24h: float = 0.0
    change_1h: float = 0.0
    change_24h: float = 0.0
    change_7d: float = 0.0
    market_cap: float = 0.0
    rank: Optional[int] = None
    logo: Optional[str] = None


@dataclass(frozen=True)
class PricePoint:
    timestamp: datetime
    close: float


@dataclass(frozen=True)
class NewsItem:
    title: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url}


def _round_or_na(value: Optional[float], digits: int) -> Any:
    return round(value, digits) if value is not None else NOT_AVAILABLE


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest indicator values, full precision. None means "unavailable".

    `volume` is never computed: there is no volume indicator, the field
    only makes that explicit. Rounding happens in `display_values` only.
    """

    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    volume: Optional[float] = None

    @classmethod
    def unavailable(cls) -> "IndicatorSnapshot":
        return cls()

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.rsi, self.macd, self.macd_signal, self.macd_histogram, self.sma50, self.sma200)
        )

    def display_values(self) -> Dict[str, Any]:
        return {
            "rsi": _round_or_na(self.rsi, 2),
            "macd": _round_or_na(self.macd, 4),
            "macdSignal": _round_or_na(self.macd_signal, 4),
            "macdHistogram": _round_or_na(self.macd_histogram, 4),
            "sma50": _round_or_na(self.sma50, 4),
            "sma200": _round_or_na(self.sma200, 4),
            "volume": NOT_AVAILABLE,
        }


@dataclass
class ChartData:
    symbol: str
    points: List[PricePoint] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.symbol} Price (USD)"

    def labels(self) -> List[str]:
        return [p.timestamp.date().isoformat() for p in self.points]

    def closes(self) -> List[float]:
        return [p.close for p in self.points]
