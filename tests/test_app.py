"""Tests for the FastAPI endpoints with the YNAB client stubbed out."""

import httpx
import pytest
from fastapi.testclient import TestClient

from tests.conftest import make_category, make_month
from ynab_alignment import app as app_module
from ynab_alignment.models import Budget

BUDGET = Budget(id="b1", name="Household", first_month="2024-01-01", last_month="2024-12-01")


@pytest.fixture
def client():
    return TestClient(app_module.app)


@pytest.fixture
def stub_ynab(monkeypatch):
    month = make_month(
        [
            make_category(id="rent", name="Rent", budgeted=50000, goal_type="MF", goal_target=50000),
            make_category(id="fun", name="Fun", budgeted=40000, goal_type="MF", goal_target=10000),
            make_category(
                id="gas", name="Gas", budgeted=100000, goal_type="NEED", goal_target=25000,
                goal_cadence=2, goal_cadence_frequency=1, goal_day=1,
            ),
        ],
        month="2024-12-01",
        income=300000,
    )
    requested = []

    def get_month(budget_id, month_str):
        requested.append((budget_id, month_str))
        return month

    monkeypatch.setattr(app_module.ynab, "get_budgets", lambda: [BUDGET])
    monkeypatch.setattr(app_module.ynab, "get_budget", lambda bid: BUDGET if bid == "b1" else None)
    monkeypatch.setattr(app_module.ynab, "get_default_budget", lambda: BUDGET)
    monkeypatch.setattr(app_module.ynab, "get_month", get_month)
    monkeypatch.setattr(app_module, "YNAB_BUDGET_ID", "")
    return requested


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_config_status_hides_values(client):
    body = client.get("/api/config").json()
    assert body["valid"] is True
    assert "test-token" not in str(body)


def test_list_budgets(client, stub_ynab):
    body = client.get("/api/budgets").json()
    assert body["data"][0]["id"] == "b1"


def test_monthly_analysis(client, stub_ynab):
    resp = client.get("/api/analysis/monthly", params={"budget_id": "b1", "month": "2024-12-01"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    analysis = body["data"]["monthly_analysis"]
    assert analysis["total_assigned"] == 190000
    assert analysis["total_income"] == 300000
    # Gas: 25000 x 5 Mondays = 125000 needed vs 100000 assigned
    assert analysis["under_target_amount"] == 100000
    assert analysis["budget_discipline_rating"] == "Needs Improvement"
    gas = next(c for c in body["data"]["categories"] if c["id"] == "gas")
    assert gas["needed_this_month"] == 125000
    assert gas["alignment_status"] == "under-target"
    assert gas["debug"]["calculation_rule"] == "Weekly NEED"
    assert body["metadata"]["month"] == "2024-12-01"


def test_default_month_is_clamped_into_budget_range(client, stub_ynab):
    resp = client.get("/api/analysis/monthly")
    assert resp.status_code == 200
    # today is after the stub budget's last month
    assert stub_ynab == [("b1", "2024-12-01")]


def test_month_outside_range_is_400(client, stub_ynab):
    resp = client.get("/api/analysis/monthly", params={"month": "2025-03-01"})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["type"] == "invalid_month"
    assert detail["available_range"]["last_month"] == "2024-12-01"
    assert stub_ynab == []


def test_unknown_budget_is_404(client, stub_ynab):
    resp = client.get("/api/analysis/monthly", params={"budget_id": "nope"})
    assert resp.status_code == 404


def test_post_with_custom_config(client, stub_ynab):
    resp = client.post(
        "/api/analysis/monthly",
        json={"budget_id": "b1", "month": "2024-12-01", "config": {"tolerance_milliunits": 25000}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"]["monthly_analysis"]["categories_on_target"] == 2
    assert body["metadata"]["config"]["tolerance_milliunits"] == 25000


def test_post_rejects_negative_tolerance(client, stub_ynab):
    resp = client.post("/api/analysis/monthly", json={"config": {"tolerance_milliunits": -1}})
    assert resp.status_code == 422


@pytest.mark.parametrize("status,expected", [(401, 401), (404, 404), (429, 429), (500, 502)])
def test_upstream_errors_are_mapped(client, monkeypatch, status, expected):
    def failing():
        request = httpx.Request("GET", "https://api.ynab.com/v1/budgets")
        response = httpx.Response(status, request=request)
        raise httpx.HTTPStatusError("boom", request=request, response=response)

    monkeypatch.setattr(app_module.ynab, "get_budgets", failing)
    assert client.get("/api/budgets").status_code == expected


def test_network_failure_is_503(client, monkeypatch):
    def failing():
        raise httpx.ConnectError("no route")

    monkeypatch.setattr(app_module.ynab, "get_budgets", failing)
    assert client.get("/api/budgets").status_code == 503


def test_explain_category(client, stub_ynab):
    resp = client.get("/api/debug/category/fun", params={"month": "2024-12-01"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["variance"] == 30000
    assert data["debug"]["calculation_rule"] == "Fallback"
    assert client.get("/api/debug/category/nope", params={"month": "2024-12-01"}).status_code == 404


def test_clear_cache(client, monkeypatch):
    monkeypatch.setattr(app_module.ynab, "clear_cache", lambda: 3)
    assert client.post("/api/debug/clear-cache").json() == {"success": True, "cleared": 3}


def test_connection_check_reports_budgets(client, stub_ynab):
    body = client.get("/api/ynab/test-connection").json()
    assert body["connected"] is True
    assert body["budget_count"] == 1


def test_connection_check_reports_bad_token(client, monkeypatch):
    def failing():
        request = httpx.Request("GET", "https://api.ynab.com/v1/budgets")
        response = httpx.Response(401, request=request)
        raise httpx.HTTPStatusError("unauthorized", request=request, response=response)

    monkeypatch.setattr(app_module.ynab, "get_budgets", failing)
    resp = client.get("/api/ynab/test-connection")
    assert resp.status_code == 200
    assert resp.json()["connected"] is False
    assert "token" in resp.json()["error"]
