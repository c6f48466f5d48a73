import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.application import get_record_store, reset_analytics_state
from farmops.core.schema import Assignment, Bukid, Pitak, Worker


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    monkeypatch.delenv("FARMOPS_SESSION_ID", raising=False)
    monkeypatch.delenv("FARMOPS_SNAPSHOT_DIR", raising=False)
    reset_analytics_state()
    yield
    reset_analytics_state()


@pytest.fixture()
def client():
    from farmops.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def _seed() -> None:
    store = get_record_store()
    earlier = datetime.now() - timedelta(days=2)
    store.add_worker(Worker(id=1, name="Juan"))
    store.add_bukid(Bukid(id=1, name="Bukid Uno", session_id=7))
    store.add_bukid(Bukid(id=2, name="Bukid Dos", session_id=8))
    store.add_pitak(Pitak(id=1, location="North", total_luwang=Decimal("40"), bukid_id=1))
    store.add_pitak(Pitak(id=2, location="South", total_luwang=Decimal("40"), bukid_id=2))
    for record_id, (pitak_id, session_id, status) in enumerate(
        [(1, 7, "completed"), (1, 7, "active"), (2, 8, "completed")], start=1
    ):
        store.add_assignment(
            Assignment(
                id=record_id,
                worker_id=1,
                pitak_id=pitak_id,
                session_id=session_id,
                luwang_count=Decimal("2.5"),
                status=status,
                assignment_date=earlier,
            )
        )


def test_root_landing_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


def test_overview_envelope(client):
    _seed()
    response = client.get("/api/analytics/assignments/overview")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] is True
    assert body["message"] == "Assignment overview retrieved"
    assert body["data"]["summary"]["total_assignments"] == 3
    assert body["data"]["luwang_metrics"]["total"] == 7.5
    assert "error_kind" not in body


def test_validation_failure_maps_to_400(client):
    response = client.get("/api/analytics/assignments/trend", params={"period": "decade"})
    assert response.status_code == 400
    body = response.json()
    assert body["status"] is False
    assert body["data"]["errors"]


def test_unknown_pitak_maps_to_404(client):
    response = client.get("/api/analytics/pitaks/999")
    assert response.status_code == 404
    assert response.json()["status"] is False


def test_start_and_end_dates_form_a_date_range(client):
    _seed()
    today = datetime.now().date()
    response = client.get(
        "/api/analytics/assignments/luwang-summary",
        params={"startDate": str(today - timedelta(days=10)), "endDate": str(today + timedelta(days=1))},
    )
    assert response.status_code == 200
    assert response.json()["data"]["summary"]["assignment_count"] == 3

    reversed_range = client.get(
        "/api/analytics/assignments/luwang-summary",
        params={"startDate": str(today), "endDate": str(today - timedelta(days=10))},
    )
    assert reversed_range.status_code == 400


def test_date_range_with_utc_offset_is_accepted(client):
    _seed()
    response = client.get(
        "/api/analytics/assignments/trend",
        params={"startDate": "2000-01-01T00:00:00Z", "endDate": "2100-01-01T00:00:00Z", "groupBy": "yearly"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["summary"]["total_assignments"] == 3


def test_session_from_environment(monkeypatch):
    monkeypatch.setenv("FARMOPS_SESSION_ID", "7")
    from farmops.app import create_app

    _seed()
    with TestClient(create_app()) as client:
        scoped = client.get("/api/analytics/assignments/overview", params={"currentSession": "true"}).json()
        assert scoped["meta"]["session_id"] == 7
        assert scoped["data"]["summary"]["total_assignments"] == 2

        compared = client.get(
            "/api/analytics/pitaks/compare", params={"pitakIds": "1,2", "currentSession": "true"}
        ).json()
        assert compared["data"]["skipped_pitak_ids"] == [2]
        assert len(compared["data"]["pitaks"]) == 1


def test_dashboard_and_financial_routes(client):
    _seed()
    for path in (
        "/api/analytics/dashboard/live",
        "/api/analytics/dashboard/today",
        "/api/analytics/dashboard/alerts",
        "/api/analytics/financial/overview",
        "/api/analytics/financial/revenue-trend",
        "/api/analytics/financial/debt-collection",
        "/api/analytics/financial/debts",
        "/api/analytics/financial/payments",
        "/api/analytics/dashboard/assignments",
        "/api/analytics/dashboard/payments",
        "/api/analytics/dashboard/debts",
        "/api/analytics/pitaks/overview",
        "/api/analytics/pitaks/1/timeline",
        "/api/analytics/pitaks/1/workers",
        "/api/analytics/pitaks/1/efficiency",
        "/api/analytics/assignments/completion-rate",
        "/api/analytics/assignments/pitak-utilization",
    ):
        response = client.get(path)
        assert response.status_code == 200, path
        assert response.json()["status"] is True, path
