"""API-level tests for the HTTP and WebSocket endpoints."""

import asyncio
from datetime import date

import pytest
from fastapi.testclient import TestClient

from displacement_api.core.jitter import NoJitter
from displacement_api.core.measurements import SeriesStore
from displacement_api.core.nowcast_engine import NowcastEngine
from displacement_api.core.runtime import NowcastRuntime
from displacement_api.main import app
from displacement_api.routes.dependencies import get_runtime
from displacement_api.storage import MemoryStateStore

client = TestClient(app)


@pytest.fixture()
def runtime(fake_fetcher):
    """A refreshed runtime wired into the app in place of the lifespan one."""
    engine = NowcastEngine(series=SeriesStore(), jitter=NoJitter(), today=lambda: date(2025, 1, 1))
    runtime = NowcastRuntime(engine=engine, fetcher=fake_fetcher(), store=MemoryStateStore())
    asyncio.run(runtime.refresh())

    app.dependency_overrides[get_runtime] = lambda: runtime
    yield runtime
    app.dependency_overrides.clear()


def test_root_returns_banner():
    """GET / describes the service."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "AI Job Displacement Counter"
    assert data["service"] == "displacement-api"
    assert data["stream"] == "/ws"
    assert "version" in data


def test_liveness():
    """GET /health/live returns alive status."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_health_without_runtime():
    """Before the lifespan has started the runtime, runtime endpoints are unavailable."""
    response = client.get("/api/health")
    assert response.status_code == 503


def test_health(runtime):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["counter"] == runtime.engine.state.integer_value
    assert data["clients"] == 0
    assert data["data_status"] == "ok"
    assert data["data_fresh"] is True
    assert data["store"] == "memory"
    assert data["store_connected"] is True


class TestMetricsEndpoints:
    def test_current_metrics(self, runtime):
        response = client.get("/api/metrics/current")
        assert response.status_code == 200
        data = response.json()
        assert data["counter"] == runtime.engine.rates.historical_mid
        assert data["per_day"] == 4050
        assert data["methodology"]["source"] == "BLS JOLTS via FRED"
        assert data["methodology"]["ai_rate"] == 7.1
        assert data["data_status"] == "ok"

    def test_methodology(self, runtime):
        response = client.get("/api/methodology")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == "2.0"
        assert data["ai_attribution_model"]["industry_rates"]["information"]["mid"] == 0.18

    def test_raw_data(self, runtime):
        response = client.get("/api/data/raw")
        assert response.status_code == 200
        data = response.json()
        assert data["series"]["series"]["retail"]["latest_value"] == 200_000.0
        assert data["calculated"]["ai_mid"] == 121_500
        assert data["data_status"] == "ok"


class TestAttributionEndpoints:
    def test_explicit_total(self, runtime):
        response = client.get("/api/attribution", params={"total": 100_000, "as_of_date": "2025-06-01"})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 100_000
        assert data["as_of_date"] == "2025-06-01"
        assert abs(data["distributed"] - 100_000) <= len(data["companies"])
        attributed = [c["attributed"] for c in data["companies"]]
        assert attributed == sorted(attributed, reverse=True)
        assert data["warnings"] == []

    def test_defaults_to_live_counter(self, runtime):
        response = client.get("/api/attribution", params={"limit": 3})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == runtime.engine.state.integer_value
        assert [c["rank"] for c in data["companies"]] == [1, 2, 3]

    def test_company_factors(self, runtime):
        response = client.get("/api/attribution", params={"total": 1000, "as_of_date": "2025-06-01"})
        companies = {c["name"]: c for c in response.json()["companies"]}

        ssi = companies["Safe Superintelligence"]
        assert ssi["attributed"] == 0
        assert ssi["factors"]["maturity"] == 0.0

        openai = companies["OpenAI"]
        assert openai["factors"]["displacement_type"] == "infrastructure"
        assert openai["factors"]["maturity"] == 1.0
        assert openai["category_name"]

    def test_invalid_date(self, runtime):
        response = client.get("/api/attribution", params={"as_of_date": "yesterday"})
        assert response.status_code == 400

    def test_negative_total_rejected(self, runtime):
        response = client.get("/api/attribution", params={"total": -5})
        assert response.status_code == 422

    def test_categories(self):
        response = client.get("/api/categories")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 9
        assert sum(c["companies"] for c in data) == 185
        assert sum(c["allocation_weight"] for c in data) == pytest.approx(1.0, abs=0.01)


class TestStream:
    def test_init_message_on_connect(self, runtime):
        with client.websocket_connect("/ws") as websocket:
            message = websocket.receive_json()

        assert message["type"] == "init"
        assert message["data"]["counter"] == runtime.engine.state.integer_value
        assert message["data"]["methodology"]["start_date"] == "2023-01-01"

    def test_viewer_removed_after_disconnect(self, runtime):
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()

        assert runtime.manager.count == 0
