"""Tests for the FastAPI surface, backed by a fake backend."""

import time

from fastapi.testclient import TestClient

from coinsight.api.server import create_app
from coinsight.infrastructure.errors import BackendHTTPError
from coinsight.infrastructure.utils.config import CoinsightConfig
from fakes import FakeBackend, coin, make_orchestrator


def _client(backend):
    app = create_app(config=CoinsightConfig(), orchestrator=make_orchestrator(backend))
    return TestClient(app)


def _wait_for(client, predicate, attempts=300):
    for _ in range(attempts):
        body = client.get("/state").json()
        if predicate(body):
            return body
        time.sleep(0.01)
    raise AssertionError(f"state never matched, last phase={body['phase']}")


def _backend():
    return FakeBackend(
        quotes=[coin("AAA", 1), coin("BBB", 2)],
        analysis={"AAA": {"analysis": "A view"}, "BBB": {"analysis": "B view"}},
    )


def test_health():
    with _client(_backend()) as client:
        assert client.get("/health").json() == {"ok": True}


def test_state_after_startup():
    with _client(_backend()) as client:
        body = _wait_for(client, lambda b: b["phase"] == "detail_ready")
        assert body["selection"] == {"symbol": "AAA", "language": "en"}
        assert body["ai_summary"] == "A view"
        assert body["indicators"]["volume"] == "N/A"
        assert "typewriter" in body

        assets = client.get("/assets").json()
        assert [a["symbol"] for a in assets] == ["AAA", "BBB"]


def test_select_other_coin():
    with _client(_backend()) as client:
        _wait_for(client, lambda b: b["phase"] == "detail_ready")
        resp = client.post("/selection", json={"symbol": "bbb"})
        assert resp.status_code == 200
        assert resp.json()["symbol"] == "BBB"
        body = _wait_for(client, lambda b: b["phase"] == "detail_ready" and b["ai_summary"] == "B view")
        assert body["chart"]["label"] == "BBB Price (USD)"


def test_language_switch():
    with _client(_backend()) as client:
        _wait_for(client, lambda b: b["phase"] == "detail_ready")
        assert client.post("/language", json={"language": "de"}).status_code == 422
        resp = client.post("/language", json={"language": "tr"})
        assert resp.status_code == 200
        assert resp.json() == {"language": "tr"}
        body = _wait_for(client, lambda b: b["ai_summary_display"] == "[tr] A view")
        assert body["market_metrics"][0]["label"] == "24s Hacim"


def test_selection_rejected_when_quotes_failed():
    with _client(FakeBackend(quotes=BackendHTTPError(500, "down"))) as client:
        body = _wait_for(client, lambda b: b["phase"] == "quotes_failed")
        assert body["initial_error"] == "API Error: 500 - down"
        assert client.post("/selection", json={"symbol": "AAA"}).status_code == 409
