"""Selection orchestrator: quote list -> OHLCV -> indicators -> AI summary + news -> translation -> typewriter.

One live SelectionState, one writer (this class). Every fetch result is
committed only if its cycle tag still matches the live selection when the
result arrives; anything else is discarded without touching state.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Dict, List, Optional, Sequence, Set

from coinsight.infrastructure.errors import AnalysisError, DetailFetchError, NewsError, QuoteListError
from coinsight.infrastructure.http.backend_client import BackendClient
from coinsight.infrastructure.logging.logging import bind_task_context, get_logger
from coinsight.infrastructure.utils.config import (
    SUPPORTED_LANGUAGES,
    CoinsightConfig,
    EndpointsConfig,
    MarketDataConfig,
)
from coinsight.models.market_models import Asset, ChartData, IndicatorSnapshot, NewsItem
from coinsight.models.view_models import CycleTag, Phase, SelectionState, ViewState
from coinsight.services.analysis.ai_analysis import fetch_analysis, news_context
from coinsight.services.market.indicators import IndicatorEngine
from coinsight.services.market.ohlcv_history import fetch_price_history
from coinsight.services.market.quotes import fetch_quotes
from coinsight.services.news.news_feed import fetch_news
from coinsight.services.presentation.typewriter import TypewriterRenderer
from coinsight.services.presentation.ui_text import ui_text
from coinsight.services.translation.translator import GoogleTranslateTransport, TranslationService

NO_DATA_SUMMARY = "No data to analyze."
NO_OHLCV_DATA = "No OHLCV data found for this coin."
SELECT_COIN_SUMMARY = "Please select a coin to view data."


class SelectionOrchestrator:
    def __init__(
        self,
        client: Any,
        translator: TranslationService,
        *,
        engine: Optional[IndicatorEngine] = None,
        typewriter: Optional[TypewriterRenderer] = None,
        endpoints: Optional[EndpointsConfig] = None,
        market: Optional[MarketDataConfig] = None,
        language: str = "en",
        languages: Sequence[str] = SUPPORTED_LANGUAGES,
    ) -> None:
        self._logger = get_logger("orchestrator")
        self._client = client
        self._translator = translator
        self._engine = engine or IndicatorEngine()
        self._typewriter = typewriter or TypewriterRenderer()
        self._endpoints = endpoints or EndpointsConfig()
        self._market = market or MarketDataConfig()
        self._languages = tuple(languages)
        if language not in self._languages:
            raise ValueError(f"Unsupported language: {language}")

        self._state = ViewState(selection=SelectionState(language=language))
        self._generation = 0
        self._tasks: Set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def selection(self) -> SelectionState:
        return self._state.selection

    @property
    def typewriter(self) -> TypewriterRenderer:
        return self._typewriter

    @property
    def languages(self) -> Sequence[str]:
        return self._languages

    # ---- task bookkeeping ----
    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("task_failed", task=task.get_name(), error=repr(exc))

    async def wait_until_settled(self) -> None:
        """Wait for every fetch/translation task, including ones spawned while waiting."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        self._typewriter.stop()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        close_client = getattr(self._client, "close", None)
        if callable(close_client):
            close_client()

    def is_current(self, tag: CycleTag) -> bool:
        return tag.seq == self._generation and tag.symbol == self._state.selection.symbol

    def _discard(self, tag: CycleTag, stage: str) -> None:
        self._logger.debug(
            "stale_result_discarded",
            stage=stage,
            symbol=tag.symbol,
            seq=tag.seq,
            live_seq=self._generation,
            live_symbol=self._state.selection.symbol,
        )

    # ---- startup ----
    async def start(self) -> None:
        s = self._state
        if s.phase is not Phase.IDLE:
            raise RuntimeError(f"Orchestrator already started (phase={s.phase.value})")

        s.phase = Phase.LOADING_QUOTES
        self._logger.info("quotes_loading")
        try:
            assets = await fetch_quotes(self._client, path=self._endpoints.quotes)
        except QuoteListError as e:
            s.phase = Phase.QUOTES_FAILED
            s.initial_error = str(e)
            self._logger.error("quotes_failed", error=str(e))
            return

        s.assets = assets
        s.phase = Phase.QUOTES_READY
        if assets:
            self.select(assets[0].symbol)
        else:
            self._logger.warning("quotes_empty")

    # ---- user triggers ----
    def select(self, symbol: str) -> Optional[asyncio.Task[Any]]:
        """Start a detail cycle for `symbol`. Must be called on the event loop."""
        s = self._state
        if s.phase in (Phase.IDLE, Phase.LOADING_QUOTES, Phase.QUOTES_FAILED):
            self._logger.warning("selection_ignored", symbol=symbol, phase=s.phase.value)
            return None

        symbol = str(symbol).strip().upper()
        self._generation += 1
        tag = CycleTag(seq=self._generation, symbol=symbol, language=s.selection.language)
        s.selection.symbol = symbol

        asset = s.find_asset(symbol)
        if asset is None:
            self._logger.warning("unknown_symbol", symbol=symbol, seq=tag.seq)
            self._fail_detail(tag, "unknown_symbol", chart_error=None, summary=SELECT_COIN_SUMMARY)
            return None

        s.phase = Phase.LOADING_DETAIL
        s.failure_reason = None
        s.chart_loading = True
        s.chart_error = None
        s.news_loading = True
        s.news_error = None
        s.analysis_error = None
        self._commit_summary(None)

        self._logger.info("detail_cycle_start", symbol=symbol, seq=tag.seq)
        return self._spawn(self._run_detail_cycle(tag, asset), name=f"detail:{symbol}:{tag.seq}")

    def set_language(self, language: str) -> None:
        language = str(language).strip().lower()
        if language not in self._languages:
            raise ValueError(f"Unsupported language: {language}")

        s = self._state
        if language == s.selection.language:
            return
        self._logger.info("language_changed", previous=s.selection.language, language=language)
        s.selection.language = language
        self._refresh_summary_translation()
        self._refresh_news_translation()

    # ---- detail cycle ----
    async def _run_detail_cycle(self, tag: CycleTag, asset: Asset) -> None:
        bind_task_context(cycle_symbol=tag.symbol, cycle_seq=tag.seq)
        try:
            await self._detail_cycle(tag, asset)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # a cycle always ends in detail_ready or detail_failed
            self._logger.error("detail_cycle_crashed", symbol=tag.symbol, seq=tag.seq, error=repr(e))
            if not self.is_current(tag):
                self._discard(tag, "crash")
                return
            self._fail_detail(tag, f"internal_error: {e}", chart_error=str(e), summary=NO_DATA_SUMMARY)

    async def _detail_cycle(self, tag: CycleTag, asset: Asset) -> None:
        s = self._state
        try:
            points = await fetch_price_history(
                self._client,
                tag.symbol,
                interval=self._market.interval,
                outputsize=self._market.outputsize,
                path=self._endpoints.ohlcv,
            )
        except DetailFetchError as e:
            if not self.is_current(tag):
                self._discard(tag, "ohlcv")
                return
            self._fail_detail(tag, str(e), chart_error=str(e), summary=NO_DATA_SUMMARY)
            return

        if not self.is_current(tag):
            self._discard(tag, "ohlcv")
            return

        if not points:
            self._fail_detail(tag, "no_data", chart_error=NO_OHLCV_DATA, summary=NO_DATA_SUMMARY)
            return

        indicators = self._engine.compute([p.close for p in points])
        s.chart = ChartData(symbol=tag.symbol, points=points)
        s.indicators = indicators
        s.chart_loading = False
        self._logger.info(
            "indicators_computed",
            symbol=tag.symbol,
            seq=tag.seq,
            points=len(points),
            **indicators.display_values(),
        )

        news_so_far = news_context(s.news, s.news_symbol or "", tag.symbol)
        await asyncio.gather(
            self._load_analysis(tag, asset, indicators, news_so_far),
            self._load_news(tag),
        )

        if self.is_current(tag):
            s.phase = Phase.DETAIL_READY
            self._logger.info("detail_ready", symbol=tag.symbol, seq=tag.seq)

    async def _load_analysis(
        self,
        tag: CycleTag,
        asset: Asset,
        indicators: IndicatorSnapshot,
        news: List[NewsItem],
    ) -> None:
        try:
            text = await fetch_analysis(self._client, asset, indicators, news, path=self._endpoints.analyze)
        except AnalysisError as e:
            if not self.is_current(tag):
                self._discard(tag, "analysis")
                return
            self._state.analysis_error = str(e)
            self._commit_summary(f"AI analysis error: {e}")
            return

        if not self.is_current(tag):
            self._discard(tag, "analysis")
            return
        self._commit_summary(text)

    async def _load_news(self, tag: CycleTag) -> None:
        s = self._state
        try:
            items = await fetch_news(self._client, tag.symbol, path=self._endpoints.news)
        except NewsError as e:
            if not self.is_current(tag):
                self._discard(tag, "news")
                return
            s.news_error = str(e)
            items = []
        else:
            if not self.is_current(tag):
                self._discard(tag, "news")
                return

        s.news = items
        s.news_symbol = tag.symbol
        s.news_loading = False
        self._refresh_news_translation()

    def _fail_detail(self, tag: CycleTag, reason: str, *, chart_error: Optional[str], summary: str) -> None:
        s = self._state
        s.phase = Phase.DETAIL_FAILED
        s.failure_reason = reason
        s.chart = None
        s.indicators = IndicatorSnapshot.unavailable()
        s.chart_loading = False
        s.chart_error = chart_error
        s.news = []
        s.news_symbol = None
        s.news_loading = False
        self._refresh_news_translation()
        self._commit_summary(summary)
        self._logger.warning("detail_failed", symbol=tag.symbol, seq=tag.seq, reason=reason)

    # ---- summary: raw -> translated -> typewriter ----
    def _commit_summary(self, raw: Optional[str]) -> None:
        self._state.ai_summary = raw
        self._refresh_summary_translation()

    def _show_summary(self, display: str) -> None:
        self._state.ai_summary_display = display
        self._typewriter.start(display)

    def _refresh_summary_translation(self) -> None:
        s = self._state
        raw = s.ai_summary
        language = s.selection.language
        if raw is None:
            self._show_summary(ui_text("aiSummaryPlaceholder", language))
            return
        if self._translator.is_noop(language):
            self._show_summary(raw)
            return
        self._spawn(self._translate_summary(raw, language), name=f"translate_summary:{language}")

    async def _translate_summary(self, raw: str, language: str) -> None:
        translated = await self._translator.translate(raw, language)
        s = self._state
        if s.ai_summary != raw or s.selection.language != language:
            self._logger.debug("stale_translation_discarded", kind="summary", language=language)
            return
        self._show_summary(translated)

    # ---- news titles ----
    def _refresh_news_translation(self) -> None:
        s = self._state
        news = s.news
        language = s.selection.language
        s.translated_news = list(news)
        if not news or self._translator.is_noop(language):
            return
        self._spawn(self._translate_news(news, language), name=f"translate_news:{language}")

    async def _translate_news(self, news: List[NewsItem], language: str) -> None:
        titles = await self._translator.translate_many([n.title for n in news], language)
        s = self._state
        if s.news is not news or s.selection.language != language:
            self._logger.debug("stale_translation_discarded", kind="news", language=language)
            return
        s.translated_news = [NewsItem(title=t, url=n.url) for n, t in zip(news, titles)]

    def snapshot(self, news_title_max_length: int = 60) -> Dict[str, Any]:
        data = self._state.to_dict(news_title_max_length=news_title_max_length)
        data["typewriter"] = {
            "text": self._typewriter.text,
            "displayed": self._typewriter.displayed,
            "visible": self._typewriter.visible,
            "complete": self._typewriter.is_complete,
        }
        return data


def build_orchestrator(
    config: CoinsightConfig,
    *,
    on_update: Optional[Callable[[str], None]] = None,
) -> SelectionOrchestrator:
    """Wire the orchestrator and its collaborators from config."""
    client = BackendClient(config.backend.base_url, timeout_sec=config.backend.timeout_sec)
    transport = GoogleTranslateTransport(config.translation.url, timeout_sec=config.translation.timeout_sec)
    translator = TranslationService(
        transport,
        source_language=config.translation.source_language,
        enabled=config.translation.enabled,
    )
    ind = config.indicators
    engine = IndicatorEngine(
        rsi_period=ind.rsi_period,
        macd_fast_period=ind.macd_fast_period,
        macd_slow_period=ind.macd_slow_period,
        macd_signal_period=ind.macd_signal_period,
        sma_short_period=ind.sma_short_period,
        sma_long_period=ind.sma_long_period,
    )
    typewriter = TypewriterRenderer(
        interval_sec=config.display.typewriter_interval_ms / 1000.0,
        on_update=on_update,
    )
    return SelectionOrchestrator(
        client,
        translator,
        engine=engine,
        typewriter=typewriter,
        endpoints=config.backend.endpoints,
        market=config.market,
        language=config.display.default_language,
        languages=config.display.languages,
    )
