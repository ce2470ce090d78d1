"""Entrypoint.

Usage:
  python -m coinsight.app.main run                          # headless session, first coin by rank
  python -m coinsight.app.main run --symbol ETH --language tr
  python -m coinsight.app.main api                          # run FastAPI server
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from coinsight.app.orchestrator import SelectionOrchestrator, build_orchestrator
from coinsight.infrastructure.logging.logging import configure_logging, get_logger
from coinsight.infrastructure.utils.config import SUPPORTED_LANGUAGES, load_config
from coinsight.models.view_models import Phase
from coinsight.services.presentation.ui_text import truncate_text, ui_text


class _StreamWriter:
    """Typewriter sink: prints only the newly revealed characters."""

    def __init__(self) -> None:
        self._shown = ""

    def __call__(self, displayed: str) -> None:
        if not displayed.startswith(self._shown):
            # reveal restarted with a new text
            sys.stdout.write("\n")
            self._shown = ""
        sys.stdout.write(displayed[len(self._shown):])
        sys.stdout.flush()
        self._shown = displayed


def print_report(orch: SelectionOrchestrator, news_title_max_length: int) -> None:
    s = orch.state
    lang = s.selection.language
    print()
    print(f"== {ui_text('headerTitle', lang)} ==")
    asset = s.current_asset
    if asset is not None:
        print(f"{asset.name} ({asset.symbol})  ${asset.price:,.2f}  [{ui_text('liveLabel', lang)}]")
    if s.chart_error:
        print(f"{ui_text('chartError', lang)}: {s.chart_error}")
    elif s.chart is not None:
        print(f"{ui_text('priceChart', lang)}: {len(s.chart.points)} points, last close {s.chart.closes()[-1]}")

    print(f"-- {ui_text('technicalIndicators', lang)} --")
    for name, value in s.indicators.display_values().items():
        print(f"  {name}: {value}")

    print(f"-- {ui_text('marketData', lang)} --")
    for metric in s.market_metrics():
        print(f"  {metric['label']}: {metric['value']}")

    print(f"-- {ui_text('latestNews', lang)} --")
    if s.news_error:
        print(f"  {ui_text('newsError', lang)}: {s.news_error}")
    elif not s.news_to_render():
        print(f"  {ui_text('noNews', lang)} {s.selection.symbol}")
    for item in s.news_to_render():
        print(f"  - {truncate_text(item.title, news_title_max_length)} <{item.url}>")


async def run_session(
    config_path: Optional[Path] = None,
    symbol: Optional[str] = None,
    language: Optional[str] = None,
) -> int:
    config = load_config(config_path)
    configure_logging(config.log_level, json_logs=False)
    log = get_logger("main")

    orch = build_orchestrator(config, on_update=_StreamWriter())
    try:
        if language:
            orch.set_language(language)
        await orch.start()
        if orch.state.phase is Phase.QUOTES_FAILED:
            log.error("startup_failed", error=orch.state.initial_error)
            return 1
        if symbol:
            orch.select(symbol)

        await orch.wait_until_settled()
        await orch.typewriter.wait()
        print_report(orch, config.display.news_title_max_length)
        return 0 if orch.state.phase is Phase.DETAIL_READY else 2
    finally:
        await orch.close()


def main() -> None:
    parser = argparse.ArgumentParser("coinsight")
    parser.add_argument("command", choices=["run", "api"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="Path to YAML config")
    parser.add_argument("--symbol", default=None, help="Coin symbol to analyse (default: top ranked)")
    parser.add_argument("--language", default=None, choices=list(SUPPORTED_LANGUAGES), help="Display language")
    args = parser.parse_args()

    if args.command == "run":
        sys.exit(asyncio.run(run_session(args.config, args.symbol, args.language)))

    if args.command == "api":
        from coinsight.api.server import create_app

        config = load_config(args.config)
        configure_logging(config.log_level)
        uvicorn.run(
            create_app(config),
            host=config.api.host,
            port=config.api.port,
            reload=False,
        )
        return


if __name__ == "__main__":
    main()
