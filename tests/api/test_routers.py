"""
Integration tests for the trade journal API routers.

Tests cover:
- System endpoints (health, app info, integrity)
- Trade CRUD, repartition and the filtered trade view
- Thesis CRUD, quarter conflicts and the active-thesis lookup
- Metrics endpoints
- Error envelopes and status codes
"""

import pytest
from fastapi.testclient import TestClient

from tradejournal.api.dependencies import get_container, reset_container
from tradejournal.api.main import create_app
from tradejournal.config.settings import JournalSettings

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def client(tmp_path):
    """TestClient over a journal in a temporary directory."""
    reset_container()
    settings = JournalSettings(BASE_DIR=tmp_path, PAGE_SIZE=2)
    app = create_app(base_dir=tmp_path, settings=settings, setup_logging=False)
    with TestClient(app) as test_client:
        yield test_client
    reset_container()


def _assert_envelope(body, success=True):
    assert body["success"] is success
    assert body["timestamp"].endswith("Z")
    if not success:
        assert body["error"]
        assert body["code"]


# =============================================================================
# System
# =============================================================================


class TestSystemRouter:
    """Tests for the system endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"] == {"dataDirectory": True}

    def test_app_info(self, client, tmp_path):
        body = client.get("/api/app/info").json()
        _assert_envelope(body)
        assert body["data"]["name"] == "TradingJournal"
        assert body["data"]["dataDirectory"] == str(tmp_path / "data")

    def test_integrity_reports_bad_files(self, client, tmp_path):
        bad = tmp_path / "data" / "theses" / "2024_Q1_x_bad.json"
        bad.write_text("{", encoding="utf-8")

        body = client.get("/api/integrity").json()
        assert body["data"]["trades"] == []
        assert body["data"]["theses"][0]["code"] == "DATA_2003"

    def test_uninitialized_container(self, tmp_path):
        reset_container()
        app = create_app(base_dir=tmp_path, settings=JournalSettings(BASE_DIR=tmp_path), setup_logging=False)
        # Without the context manager the lifespan never runs
        response = TestClient(app).get("/api/trades")
        assert response.status_code == 503
        assert response.json()["success"] is False


# =============================================================================
# Trades
# =============================================================================


class TestTradesRouter:
    """Tests for the trade endpoints."""

    def test_create_and_get(self, client, make_trade):
        response = client.post("/api/trades", json=make_trade(id="trade-1"))
        assert response.status_code == 200
        assert response.json()["data"] == "trade-1"

        body = client.get("/api/trades/trade-1").json()
        _assert_envelope(body)
        assert body["data"]["ticker"] == "AAPL"
        assert body["data"]["preTradeNotes"]["riskAssessment"].startswith("Stop below")

    def test_get_missing_is_404(self, client):
        response = client.get("/api/trades/nope")
        assert response.status_code == 404
        _assert_envelope(response.json(), success=False)
        assert response.json()["code"] == "DATA_2001"

    def test_invalid_trade_is_422(self, client, make_trade):
        response = client.post("/api/trades", json=make_trade(type="sideways"))
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_4001"

    def test_list_returns_summaries(self, client, make_trade):
        client.post("/api/trades", json=make_trade(id="trade-1"))
        client.post("/api/trades", json=make_trade(id="trade-2", createdAt="2024-02-01T00:00:00Z"))

        data = client.get("/api/trades").json()["data"]
        assert [t["id"] for t in data] == ["trade-2", "trade-1"]
        assert "preTradeNotes" not in data[0]

    def test_delete(self, client, make_trade):
        client.post("/api/trades", json=make_trade(id="trade-1"))
        assert client.delete("/api/trades/trade-1").status_code == 200
        assert client.get("/api/trades/trade-1").status_code == 404
        assert client.delete("/api/trades/trade-1").status_code == 404

    def test_repartition(self, client, make_trade):
        data = make_trade(id="trade-1")
        client.post("/api/trades", json=data)
        data["entryDate"] = "2023-11-01T10:00:00Z"
        client.post("/api/trades", json=data)

        body = client.post("/api/trades/trade-1/repartition").json()
        assert body["data"] == "trades/2023/AAPL_20240115_trade-1.json"

    def test_view_filters_sorts_and_pages(self, client, make_trade, make_closed_trade):
        client.post("/api/trades", json=make_trade(id="aapl", ticker="AAPL", entryDate="2024-01-10T10:00:00Z"))
        client.post("/api/trades", json=make_trade(id="msft", ticker="MSFT", type="short"))
        client.post("/api/trades", json=make_closed_trade(25, id="nvda", ticker="NVDA"))

        body = client.get("/api/trades/view").json()
        _assert_envelope(body)
        view = body["data"]
        assert view["totalItems"] == 3
        assert view["totalPages"] == 2
        assert view["pageSize"] == 2
        assert view["hasNext"] is True

        view = client.get("/api/trades/view", params={"type": "long", "sortField": "ticker"}).json()["data"]
        assert [t["id"] for t in view["items"]] == ["nvda", "aapl"]
        assert view["filters"] == {"type": "long"}
        assert view["stats"]["completedTrades"] == 1
        assert view["stats"]["profitFactor"] == "unbounded"

    def test_view_rejects_oversized_page(self, client):
        response = client.get("/api/trades/view", params={"pageSize": 10_000})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_4002"

    def test_view_reflects_writes(self, client, make_trade):
        client.get("/api/trades/view")
        client.post("/api/trades", json=make_trade(id="trade-1"))
        assert client.get("/api/trades/view").json()["data"]["totalItems"] == 1


# =============================================================================
# Theses
# =============================================================================


class TestThesesRouter:
    """Tests for the thesis endpoints."""

    def test_create_and_conflict(self, client, make_thesis):
        assert client.post("/api/theses", json=make_thesis(id="plan-1")).status_code == 200

        response = client.post("/api/theses", json=make_thesis(id="plan-2"))
        assert response.status_code == 409
        assert response.json()["code"] == "DATA_2004"

    def test_update_appends_version(self, client, make_thesis):
        data = make_thesis(id="plan-1")
        client.post("/api/theses", json=data)
        data["title"] = "Momentum revised after CPI"
        client.post("/api/theses", json=data, params={"changes": "Post CPI review", "changedBy": "me"})

        thesis = client.get("/api/theses/plan-1").json()["data"]
        assert thesis["title"] == "Momentum revised after CPI"
        assert thesis["versions"][0]["versionNumber"] == 1
        assert thesis["versions"][0]["changes"] == "Post CPI review"
        assert thesis["versions"][0]["changedBy"] == "me"

    def test_list_with_trade_counts(self, client, make_thesis, make_trade):
        client.post("/api/theses", json=make_thesis(id="plan-1"))
        client.post("/api/trades", json=make_trade(linkedThesisId="plan-1"))

        data = client.get("/api/theses").json()["data"]
        assert data[0]["id"] == "plan-1"
        assert data[0]["tradeCount"] == 1

    def test_active_lookup(self, client, make_thesis):
        client.post("/api/theses", json=make_thesis(id="plan-1"))

        body = client.get("/api/theses/active", params={"year": 2024, "quarter": "Q1"}).json()
        assert body["data"]["id"] == "plan-1"

        body = client.get("/api/theses/active", params={"year": 2024, "quarter": "Q3"}).json()
        assert body["success"] is True
        assert "data" not in body

    def test_active_lookup_bad_quarter(self, client):
        response = client.get("/api/theses/active", params={"year": 2024, "quarter": "Q7"})
        assert response.status_code == 422

    def test_delete(self, client, make_thesis):
        client.post("/api/theses", json=make_thesis(id="plan-1"))
        assert client.delete("/api/theses/plan-1").status_code == 200
        assert client.get("/api/theses/plan-1").status_code == 404


# =============================================================================
# Metrics
# =============================================================================


class TestMetricsRouter:
    """Tests for the metrics endpoints."""

    def test_thesis_metrics(self, client, make_thesis, make_closed_trade):
        client.post("/api/theses", json=make_thesis(id="plan-1"))
        client.post("/api/trades", json=make_closed_trade(100, linkedThesisId="plan-1"))
        client.post("/api/trades", json=make_closed_trade(-50, linkedThesisId="plan-1"))

        body = client.get("/api/metrics/theses/plan-1").json()
        _assert_envelope(body)
        assert body["data"]["metrics"]["profitFactor"] == 2.0
        assert body["data"]["metrics"]["winRate"] == 0.5
        assert body["data"]["goalProgress"]["tradeCountProgress"] == 50.0

    def test_thesis_metrics_missing(self, client):
        assert client.get("/api/metrics/theses/nope").status_code == 404

    def test_portfolio(self, client, make_thesis, make_closed_trade):
        client.post("/api/theses", json=make_thesis(id="plan-1"))
        client.post("/api/theses", json=make_thesis(id="plan-2", quarter="Q2"))
        client.post("/api/trades", json=make_closed_trade(100, linkedThesisId="plan-1"))
        client.post("/api/trades", json=make_closed_trade(-40, linkedThesisId="plan-2"))

        data = client.get("/api/metrics/portfolio").json()["data"]
        assert data["bestThesisId"] == "plan-1"
        assert data["worstThesisId"] == "plan-2"
        assert data["overall"]["netProfitLoss"] == 60.0

    def test_container_is_shared(self, client):
        assert get_container().is_initialized
