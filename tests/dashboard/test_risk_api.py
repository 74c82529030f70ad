"""
Tests for the Risk API.

============================================================
PURPOSE
============================================================
Verify routes, status codes and payload shapes of the REST
surface. The aggregation service is swapped in through
FastAPI dependency overrides; no network access.

============================================================
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from aggregation.service import RiskAggregationService
from cache.store import InMemoryCacheStore
from core.clock import MockClock
from core.config import PipelineSettings
from dashboard.api import app, get_service
from data_sources.fallback import default_snapshot_store
from data_sources.models import MonitoredEntity
from data_sources.providers import SanctionsReferenceSource
from data_sources.registry import SourceRegistry
from data_sources.roster import MONITORED_ENTITIES
from orchestrator.batch import BatchFetchOrchestrator
from risk_scoring.engine import RiskScoringEngine


# ============================================================
# FIXTURES
# ============================================================

def build_service(roster):
    """Service over roster with only the sanctions table registered."""
    clock = MockClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))
    cache = InMemoryCacheStore(clock)

    registry = SourceRegistry()
    registry.register(SanctionsReferenceSource())

    orchestrator = BatchFetchOrchestrator(
        registry=registry,
        snapshots=default_snapshot_store(),
        engine=RiskScoringEngine(),
        cache=cache,
        settings=PipelineSettings(),
        clock=clock,
        sleep=AsyncMock(),
    )
    return RiskAggregationService(orchestrator=orchestrator, cache=cache, roster=roster, clock=clock)


@pytest.fixture
def service():
    """Five countries, all served from snapshots."""
    return build_service(tuple(e for e in MONITORED_ENTITIES if e.iso2 in ("NG", "CD", "ZA", "BD", "JP")))


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================
# ROUTES
# ============================================================

class TestRiskApi:
    """Tests for the /api/risk routes."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_combined(self, client):
        response = client.get("/api/risk/combined")
        assert response.status_code == 200

        payload = response.json()
        assert payload["summary"]["total"] == 5
        assert payload["summary"]["avgScore"] == 14
        assert payload["updatedAt"] == "2024-06-01T12:00:00.000Z"
        assert [p["iso2"] for p in payload["profiles"]] == ["ZA", "BD", "CD", "NG", "JP"]

    def test_country(self, client):
        response = client.get("/api/risk/country/bd")
        assert response.status_code == 200

        payload = response.json()
        assert payload["iso2"] == "BD"
        assert payload["risk"]["score"] == 19
        assert [f["name"] for f in payload["risk"]["factors"]] == ["Brain drain", "Population density"]

    def test_unknown_country_is_404(self, client):
        response = client.get("/api/risk/country/ZZ")
        assert response.status_code == 404
        assert "ZZ" in response.json()["detail"]

    def test_monitored_country_without_data_is_503(self):
        kosovo = MonitoredEntity(iso2="XK", name="Kosovo", region="Europe")
        service = build_service((kosovo,))
        app.dependency_overrides[get_service] = lambda: service
        try:
            response = TestClient(app).get("/api/risk/country/xk")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["detail"] == "No data available for XK"

    def test_distribution(self, client):
        response = client.get("/api/risk/distribution")
        assert response.json() == {"critical": 0, "high": 0, "elevated": 0, "moderate": 1, "low": 4}

    def test_regions(self, client):
        regions = client.get("/api/risk/regions").json()
        assert [r["region"] for r in regions] == ["South Asia", "Sub-Saharan Africa", "East Asia"]

    def test_countries(self, client):
        countries = client.get("/api/risk/countries").json()
        assert len(countries) == 5
        assert countries[0]["iso2"] == "NG"

    def test_sources(self, client):
        sources = client.get("/api/risk/sources").json()
        assert len(sources) == 1
        assert sources[0]["name"] == "sanctions"
        assert sources[0]["is_reference"] is True
        assert sources[0]["counts_toward_live"] is False

    def test_refresh(self, client):
        client.get("/api/risk/combined")
        response = client.post("/api/risk/refresh")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "total": 5,
            "avg_score": 14,
            "updated_at": "2024-06-01T12:00:00.000Z",
        }
