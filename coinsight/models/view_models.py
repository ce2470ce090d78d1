"""Selection and view state owned by the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from coinsight.models.market_models import Asset, ChartData, IndicatorSnapshot, NewsItem
from coinsight.services.presentation.ui_text import truncate_text, ui_text


class Phase(str, Enum):
    IDLE = "idle"
    LOADING_QUOTES = "loading_quotes"
    QUOTES_READY = "quotes_ready"
    QUOTES_FAILED = "quotes_failed"
    LOADING_DETAIL = "loading_detail"
    DETAIL_READY = "detail_ready"
    DETAIL_FAILED = "detail_failed"


@dataclass
class SelectionState:
    symbol: Optional[str] = None
    language: str = "en"


@dataclass(frozen=True)
class CycleTag:
    """Identity of one detail cycle; only the live tag may commit."""

    seq: int
    symbol: str
    language: str


@dataclass
class ViewState:
    selection: SelectionState = field(default_factory=SelectionState)
    phase: Phase = Phase.IDLE
    failure_reason: Optional[str] = None

    assets: List[Asset] = field(default_factory=list)
    initial_error: Optional[str] = None

    chart: Optional[ChartData] = None
    chart_loading: bool = False
    chart_error: Optional[str] = None
    indicators: IndicatorSnapshot = field(default_factory=IndicatorSnapshot.unavailable)

    ai_summary: Optional[str] = None
    ai_summary_display: str = ""
    analysis_error: Optional[str] = None

    news: List[NewsItem] = field(default_factory=list)
    news_symbol: Optional[str] = None
    translated_news: List[NewsItem] = field(default_factory=list)
    news_loading: bool = False
    news_error: Optional[str] = None

    def find_asset(self, symbol: Optional[str]) -> Optional[Asset]:
        if not symbol:
            return None
        for asset in self.assets:
            if asset.symbol == symbol:
                return asset
        return None

    @property
    def current_asset(self) -> Optional[Asset]:
        return self.find_asset(self.selection.symbol)

    def news_to_render(self) -> List[NewsItem]:
        return self.translated_news or self.news

    def market_metrics(self) -> List[Dict[str, Any]]:
        asset = self.current_asset
        if asset is None:
            return []
        lang = self.selection.language
        return [
            {"label": ui_text("metricVolume", lang), "value": asset.volume_24h},
            {"label": ui_text("metric1hChange", lang), "value": asset.change_1h},
            {"label": ui_text("metric24hChange", lang), "value": asset.change_24h},
            {"label": ui_text("metric7dChange", lang), "value": asset.change_7d},
            {"label": ui_text("metricMarketCap", lang), "value": asset.market_cap},
            {"label": ui_text("metricRank", lang), "value": asset.rank},
        ]

    def to_dict(self, news_title_max_length: int = 60) -> Dict[str, Any]:
        chart = None
        if self.chart is not None:
            chart = {"label": self.chart.label, "labels": self.chart.labels(), "values": self.chart.closes()}
        return {
            "phase": self.phase.value,
            "failure_reason": self.failure_reason,
            "selection": asdict(self.selection),
            "assets": [asdict(a) for a in self.assets],
            "initial_error": self.initial_error,
            "chart": chart,
            "chart_loading": self.chart_loading,
            "chart_error": self.chart_error,
            "indicators": self.indicators.display_values(),
            "ai_summary": self.ai_summary,
            "ai_summary_display": self.ai_summary_display,
            "analysis_error": self.analysis_error,
            "news": [n.to_dict() for n in self.news],
            "news_display": [
                {"title": truncate_text(n.title, news_title_max_length), "url": n.url}
                for n in self.news_to_render()
            ],
            "news_loading": self.news_loading,
            "news_error": self.news_error,
            "market_metrics": self.market_metrics(),
        }
