"""HTTP surface: read the view state, select a coin, switch the language."""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from coinsight.app.orchestrator import SelectionOrchestrator, build_orchestrator
from coinsight.infrastructure.logging.logging import configure_logging, get_logger
from coinsight.infrastructure.utils.config import CoinsightConfig, load_config
from coinsight.models.view_models import Phase


class SelectionPayload(BaseModel):
    symbol: str


class LanguagePayload(BaseModel):
    language: str


def create_app(
    config: Optional[CoinsightConfig] = None,
    orchestrator: Optional[SelectionOrchestrator] = None,
) -> FastAPI:
    if config is None:
        config = load_config()
        configure_logging(config.log_level)
    log = get_logger("api")

    app = FastAPI(title="Coinsight API", version="0.1.0")

    # CORS (frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.orchestrator = orchestrator

    @app.on_event("startup")
    async def _start_orchestrator() -> None:
        if app.state.orchestrator is None:
            app.state.orchestrator = build_orchestrator(config)
        # quote loading runs in the background; /state shows loading_quotes meanwhile
        app.state.start_task = asyncio.create_task(app.state.orchestrator.start())
        log.info("api_started", backend=config.backend.base_url)

    @app.on_event("shutdown")
    async def _stop_orchestrator() -> None:
        await app.state.orchestrator.close()
        log.info("api_stopped")

    def _orchestrator(request: Request) -> SelectionOrchestrator:
        orch = request.app.state.orchestrator
        if orch is None:
            raise HTTPException(status_code=503, detail="Orchestrator not started")
        return orch

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/state")
    async def state(request: Request):
        orch = _orchestrator(request)
        return orch.snapshot(news_title_max_length=config.display.news_title_max_length)

    @app.get("/assets")
    async def assets(request: Request):
        orch = _orchestrator(request)
        return [a.__dict__ for a in orch.state.assets]

    @app.post("/selection")
    async def select(payload: SelectionPayload, request: Request):
        orch = _orchestrator(request)
        if orch.state.phase in (Phase.IDLE, Phase.LOADING_QUOTES, Phase.QUOTES_FAILED):
            raise HTTPException(status_code=409, detail=f"Quotes not ready (phase={orch.state.phase.value})")
        orch.select(payload.symbol)
        return {"symbol": orch.selection.symbol, "phase": orch.state.phase.value}

    @app.post("/language")
    async def language(payload: LanguagePayload, request: Request):
        orch = _orchestrator(request)
        try:
            orch.set_language(payload.language)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {"language": orch.selection.language}

    return app
