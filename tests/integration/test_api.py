"""
Integration tests for the opsmetrics HTTP API.

Every test runs against a fresh orchestrator injected through FastAPI's
dependency overrides.

Endpoints tested:
- System: health
- Analysis: envelope ingest, fetch lifecycle, config, benchmarks, alerts
- Views: platforms, ranking, comparison, recommendations, hours, projection
- Exports: every format
"""

import pytest
from fastapi.testclient import TestClient

from opsmetrics.engine import get_orchestrator
from opsmetrics.engine.orchestrator import AnalysisOrchestrator
from opsmetrics.main import app
from tests.conftest import make_envelope, make_hourly_raw, make_hours, make_operations_raw


@pytest.fixture
def orchestrator():
    return AnalysisOrchestrator()


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def loaded_client(client):
    response = client.post(
        "/api/v1/analysis/envelope",
        json=make_envelope(
            operations=make_operations_raw(labor=0.40),
            hourly=make_hourly_raw(make_hours(sales_by_hour={12: 500.0})),
        ),
    )
    assert response.status_code == 200
    return client


# =============================================================================
# System
# =============================================================================


class TestSystem:
    def test_health(self, client):
        """Health check reports status and version."""
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert "version" in body

    def test_request_id_echoed(self, client):
        """The request id header is propagated to the response."""
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


# =============================================================================
# Analysis
# =============================================================================


class TestAnalysis:
    def test_state_initially_idle(self, client):
        """A fresh engine is idle."""
        response = client.get("/api/v1/analysis/state")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "idle"

    def test_result_missing_is_404(self, client):
        """No result before an envelope is accepted."""
        assert client.get("/api/v1/analysis/result").status_code == 404

    def test_ingest_envelope(self, loaded_client):
        """Accepted envelopes produce a result with alerts."""
        response = loaded_client.get("/api/v1/analysis/result")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["store_id"] == "03795-00001"
        assert data["store_operations"]["alerts"][0]["severity"] == "critical"

    def test_invalid_envelope_reports_failure(self, client):
        """Validation failures are reported in the state, not as HTTP errors."""
        payload = make_envelope()
        payload["Filtering Values"]["week"] = "this week"
        response = client.post("/api/v1/analysis/envelope", json=payload)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "failed"
        assert data["errors"]

    def test_invalid_domain_record_fails_only_that_domain(self, client):
        """A malformed operations record leaves the other domains intact."""
        payload = make_envelope(operations=make_operations_raw(labor="oops"))
        response = client.post("/api/v1/analysis/envelope", json=payload)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "succeeded"
        assert data["result"]["store_operations"]["status"] == "failed"
        assert data["result"]["platform_ratings"]["status"] == "succeeded"

    def test_fetch_lifecycle(self, client):
        """begin fetch -> failure -> clear error returns to idle."""
        assert client.post("/api/v1/analysis/fetch").json()["data"]["status"] == "loading"
        failed = client.post("/api/v1/analysis/fetch/failure", json={"reason": "timeout"})
        assert failed.json()["data"]["error"] == "timeout"
        cleared = client.post("/api/v1/analysis/clear-error")
        assert cleared.json()["data"]["status"] == "idle"

    def test_patch_config_reprocesses(self, loaded_client):
        """Raising the labor ceiling drops the labor alert."""
        response = loaded_client.patch(
            "/api/v1/analysis/config",
            json={"operations": {"cost_thresholds": {"max_labor_cost": 0.5}}},
        )
        assert response.status_code == 200
        assert response.json()["data"]["result"]["store_operations"]["alerts"] == []

    def test_patch_config_invalid_is_422(self, client):
        """Unknown or invalid config keys are rejected."""
        response = client.patch("/api/v1/analysis/config", json={"hourly": {"excluded_hours": [30]}})
        assert response.status_code == 422

    def test_benchmarks_round_trip(self, client):
        """Benchmarks can be read and replaced."""
        benchmarks = client.get("/api/v1/analysis/benchmarks").json()["data"]
        benchmarks["targets"]["labor_cost"] = 0.27
        response = client.put("/api/v1/analysis/benchmarks", json=benchmarks)
        assert response.status_code == 200
        assert response.json()["data"]["benchmarks"]["targets"]["labor_cost"] == 0.27

    def test_alerts_dismiss_and_clear(self, loaded_client):
        """Alerts can be listed, dismissed and cleared."""
        listed = loaded_client.get("/api/v1/analysis/alerts").json()
        assert listed["count"] == 1

        loaded_client.delete("/api/v1/analysis/alerts/store_operations/0")
        assert loaded_client.get("/api/v1/analysis/alerts").json()["count"] == 0

        loaded_client.delete("/api/v1/analysis/alerts")
        assert loaded_client.get("/api/v1/analysis/alerts?domain=platform_ratings").json()["count"] == 0

    def test_reset(self, loaded_client):
        """Reset drops the result."""
        loaded_client.post("/api/v1/analysis/reset")
        assert loaded_client.get("/api/v1/analysis/result").status_code == 404


# =============================================================================
# Views
# =============================================================================


class TestViews:
    def test_platforms_without_result_is_404(self, client):
        assert client.get("/api/v1/views/platforms/ranking").status_code == 404

    def test_ranking_and_comparison(self, loaded_client):
        """Ranking lists every platform; comparison has best and worst."""
        ranking = loaded_client.get("/api/v1/views/platforms/ranking").json()["data"]
        assert [r["rank"] for r in ranking] == [1, 2, 3]

        comparison = loaded_client.get("/api/v1/views/platforms/comparison").json()["data"]
        assert {"best", "worst", "gaps"} <= set(comparison)

    def test_filtered_platforms(self, loaded_client):
        """Query filters narrow the platform map."""
        response = loaded_client.get("/api/v1/views/platforms", params={"platforms": ["GrubHub"]})
        assert list(response.json()["data"]) == ["GrubHub"]

    def test_recommendations(self, loaded_client):
        response = loaded_client.get("/api/v1/views/platforms/DoorDash/recommendations")
        assert response.status_code == 200
        assert response.json()["data"]["priority"] == "Low"

    def test_hours_sorted(self, loaded_client):
        """Hourly view honours sort order."""
        response = loaded_client.get("/api/v1/views/hours", params={"sort": "sales_desc"})
        body = response.json()
        assert body["count"] == 24
        assert body["data"][0]["hour"] == 12

    def test_projection_and_benchmarks(self, loaded_client):
        projection = loaded_client.get("/api/v1/views/projection")
        assert projection.status_code == 200
        assert projection.json()["data"]["horizon_periods"] == 12

        benchmarks = loaded_client.get("/api/v1/views/benchmarks").json()["data"]
        assert "Labor Cost" in benchmarks["vs_industry"]

    def test_alert_summary(self, loaded_client):
        summary = loaded_client.get("/api/v1/views/alerts/summary").json()["data"]
        assert summary["total"] == 1
        assert summary["by_severity"] == {"critical": 1}

    def test_alert_impact(self, loaded_client):
        impact = loaded_client.get("/api/v1/views/alerts/impact").json()["data"]
        assert impact["urgent_count"] == 1
        assert list(impact["by_category"]) == ["cost_control"]

    def test_peak_and_period_performance(self, loaded_client):
        """Peak hour and an inclusive hour range around it."""
        peak = loaded_client.get("/api/v1/views/hours/peak").json()["data"]
        assert peak["peak_hour"] == 12
        assert peak["time_description"] == "12:00 PM"

        response = loaded_client.get(
            "/api/v1/views/hours/performance", params={"start_hour": 11, "end_hour": 13}
        )
        assert response.status_code == 200
        assert response.json()["data"]["best_hour"] == 12

    def test_period_performance_reversed_range_is_422(self, loaded_client):
        response = loaded_client.get(
            "/api/v1/views/hours/performance", params={"start_hour": 13, "end_hour": 11}
        )
        assert response.status_code == 422

    def test_data_quality_views(self, loaded_client):
        hourly = loaded_client.get("/api/v1/views/hours/quality").json()["data"]
        assert hourly["anomalies"] == 1

        platforms = loaded_client.get("/api/v1/views/platforms/quality").json()["data"]
        assert platforms["platform_coverage"] == 100.0

        completeness = loaded_client.get("/api/v1/views/operations/completeness").json()["data"]
        assert completeness["quality"] == "Excellent"

    def test_quality_views_without_result(self, client):
        """Quality views report the absence of data instead of failing."""
        assert client.get("/api/v1/views/hours/quality").json()["data"]["level"] == "Critical"
        completeness = client.get("/api/v1/views/operations/completeness").json()["data"]
        assert completeness["overall"] == 0.0

    def test_channel_ranking(self, loaded_client):
        ranking = loaded_client.get("/api/v1/views/channels/ranking").json()["data"]
        assert [r["rank"] for r in ranking] == [1, 2, 3, 4]

    def test_cost_views(self, loaded_client):
        """High labor yields a labor saving and an efficiency gap."""
        savings = loaded_client.get("/api/v1/views/operations/cost-savings").json()["data"]
        assert savings["total_savings"] == pytest.approx(142.5)
        assert savings["opportunities"][0]["effort"] == "Medium"

        labor = loaded_client.get("/api/v1/views/operations/labor-efficiency").json()["data"]
        assert labor["current_efficiency"] == pytest.approx(75.0)

        waste = loaded_client.get("/api/v1/views/operations/waste").json()["data"]
        assert waste["total_waste"] == 30.0


# =============================================================================
# Exports
# =============================================================================


class TestExports:
    def test_export_without_result_is_404(self, client):
        assert client.get("/api/v1/exports/comprehensive").status_code == 404

    @pytest.mark.parametrize(
        "export_format",
        [
            "comprehensive",
            "executive_summary",
            "alerts_only",
            "channel_comparison",
            "platform_comparison",
            "hourly_breakdown",
        ],
    )
    def test_export_formats(self, loaded_client, export_format):
        response = loaded_client.get(f"/api/v1/exports/{export_format}")
        assert response.status_code == 200
        document = response.json()["data"]
        assert document["format"] == export_format
        assert document["filename"].endswith("-03795-00001-2025-06-12.json")

    def test_unknown_format_is_422(self, loaded_client):
        assert loaded_client.get("/api/v1/exports/pdf").status_code == 422
