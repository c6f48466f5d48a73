import asyncio
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.application import AssignmentAnalytics, FinancialAnalytics, LiveDashboard, PitakProductivity
from farmops.infrastructure import StaticSessionResolver

SCOPED = {"currentSession": True}


@pytest.fixture()
def services(seeded_store, service_options):
    return {
        "assignments": AssignmentAnalytics(seeded_store, **service_options),
        "pitaks": PitakProductivity(seeded_store, **service_options),
        "dashboard": LiveDashboard(seeded_store, **service_options),
        "financial": FinancialAnalytics(seeded_store, **service_options),
    }


def run(view, params=None):
    return asyncio.run(view(params))


# ----------------------------------------------------------------------
# empty store
# ----------------------------------------------------------------------
def test_empty_store_returns_zeroed_envelopes(store, service_options):
    assignments = AssignmentAnalytics(store, **service_options)
    pitaks = PitakProductivity(store, **service_options)
    dashboard = LiveDashboard(store, **service_options)
    financial = FinancialAnalytics(store, **service_options)
    views = [
        assignments.overview,
        assignments.trend,
        assignments.luwang_summary,
        assignments.completion_rate,
        assignments.pitak_utilization,
        pitaks.productivity_overview,
        dashboard.live_dashboard,
        dashboard.today_stats,
        dashboard.system_alerts,
        dashboard.realtime_assignments,
        dashboard.recent_payments,
        dashboard.pending_debts,
        financial.financial_overview,
        financial.revenue_trend,
        financial.debt_collection_rate,
        financial.debt_summary,
        financial.payment_summary,
    ]
    for view in views:
        response = run(view)
        assert response.status is True, view.__name__
        assert response.meta["view"] == view.__name__

    overview = run(assignments.overview).data
    assert overview["summary"]["total_assignments"] == 0
    assert overview["summary"]["completion_rate"] == 0
    assert overview["luwang_metrics"]["maximum"] == 0

    trend = run(assignments.trend, {"period": "week"}).data
    assert all(row["assignment_count"] == 0 for row in trend["trend"])
    assert trend["growth_metrics"]["assignment_growth_rate"] == 0

    alerts = run(dashboard.system_alerts).data
    assert alerts == {"alerts": [], "count": 0, "filters": {"current_session": False}}

    collection = run(financial.debt_collection_rate).data
    assert collection["overall_metrics"]["collection_rate"] == 0
    assert [row["debt_count"] for row in collection["collection_by_age"]] == [0, 0, 0, 0]


# ----------------------------------------------------------------------
# validation and session scoping
# ----------------------------------------------------------------------
def test_invalid_period_is_a_validation_failure(services):
    response = run(services["assignments"].trend, {"period": "decade"})
    assert response.status is False
    assert response.error_kind == "validation"
    assert response.errors
    assert response.meta["view"] == "trend"


def test_current_session_without_configured_session(seeded_store, service_options):
    options = {**service_options, "resolver": StaticSessionResolver(None)}
    response = run(AssignmentAnalytics(seeded_store, **options).overview, SCOPED)
    assert response.status is False
    assert response.error_kind == "validation"


def test_overview_scoping(services):
    unscoped = run(services["assignments"].overview)
    assert unscoped.meta["current_session"] is False
    summary = unscoped.data["summary"]
    assert summary["total_assignments"] == 5
    assert summary["completed_assignments"] == 3
    assert summary["completion_rate"] == 60
    assert unscoped.data["period_metrics"]["today"] == 2

    scoped = run(services["assignments"].overview, SCOPED)
    assert scoped.meta["session_id"] == 1
    assert scoped.data["summary"]["total_assignments"] == 4
    assert scoped.data["summary"]["completion_rate"] == 50
    assert scoped.data["luwang_metrics"]["total"] == Decimal("27")
    assert scoped.data["utilization"]["pitaks"]["total"] == 2


# ----------------------------------------------------------------------
# assignment views
# ----------------------------------------------------------------------
def test_trend_buckets_are_gap_filled_and_ascending(services):
    data = run(services["assignments"].trend, {"period": "week"}).data
    periods = [row["period"] for row in data["trend"]]
    assert periods == sorted(periods)
    assert periods[0] == "2024-03-08"
    assert periods[-1] == "2024-03-15"
    assert len(periods) == 8
    assert sum(row["assignment_count"] for row in data["trend"]) == 5
    assert data["summary"]["total_assignments"] == 5
    assert data["peak_periods"][0]["assignment_count"] == 2


def test_trend_without_gap_filling(services):
    data = run(services["assignments"].trend, {"period": "week", "fillGaps": False}).data
    assert [row["period"] for row in data["trend"]] == ["2024-03-13", "2024-03-14", "2024-03-15"]


def test_trend_accepts_date_range_with_utc_offset(services):
    params = {"dateRange": {"startDate": "2024-02-01T00:00:00Z", "endDate": "2024-04-01T00:00:00Z"}}
    response = run(services["assignments"].trend, params)
    assert response.status is True
    assert response.data["summary"]["total_assignments"] == 5
    assert response.data["period"]["start"].tzinfo is None


def test_completion_rate_categories_cover_all_workers(services):
    data = run(services["assignments"].completion_rate, {**SCOPED, "minAssignments": 1}).data
    assert data["overall_metrics"]["total_workers"] == 2
    assert data["overall_metrics"]["overall_completion_rate"] == 50
    assert sum(band["count"] for band in data["categories"].values()) == 2
    assert data["categories"]["average"]["count"] == 2
    assert len(data["needs_improvement"]) == 2


def test_needs_improvement_is_capped_by_limit(services):
    data = run(services["assignments"].completion_rate, {**SCOPED, "minAssignments": 1, "limit": 1}).data
    assert len(data["needs_improvement"]) == 1
    assert data["needs_improvement"][0]["completion_rate"] == 50


def test_min_assignments_filters_workers(services):
    data = run(services["assignments"].completion_rate, {"minAssignments": 3}).data
    assert [row["worker_name"] for row in data["worker_completion"]] == ["Juan"]


def test_pitak_utilization(services):
    data = run(services["assignments"].pitak_utilization, SCOPED).data
    rows = {row["pitak_id"]: row for row in data["pitak_utilization"]}
    assert rows[10]["utilization"]["utilization_rate"] == 19
    assert rows[11]["utilization"]["utilization_rate"] == 16
    assert data["overall_metrics"]["overall_utilization_rate"] == 18
    assert data["categories"]["underutilized"]["count"] == 2
    assert len(data["needs_attention"]) == 2


def test_pitak_utilization_rejects_unknown_status(services):
    response = run(services["assignments"].pitak_utilization, {"status": "harvesting"})
    assert response.error_kind == "validation"


def test_luwang_summary_groups_by_worker_and_pitak(services):
    data = run(services["assignments"].luwang_summary, SCOPED).data
    assert data["summary"]["total_luwang"] == Decimal("27")
    assert data["summary"]["completed_luwang"] == Decimal("18")
    assert {row["worker_name"] for row in data["by_worker"]} == {"Juan", "Maria"}
    assert data["top_pitaks"][0]["pitak_location"] == "North"
    assert data["top_pitaks"][0]["bukid_name"] == "Bukid Uno"


# ----------------------------------------------------------------------
# pitak views
# ----------------------------------------------------------------------
def test_productivity_details(services):
    response = run(services["pitaks"].productivity_details, {**SCOPED, "pitakId": 10})
    assert response.status is True
    data = response.data
    assert data["pitak_info"]["bukid"] == "Bukid Uno"
    assert data["productivity"]["kpis"]["land_utilization"] == 10
    assert data["productivity"]["assignments"]["total_assignments"] == 3
    assert data["financial"]["total_payments"] == 2


def test_pitak_outside_session_is_not_found(services):
    response = run(services["pitaks"].productivity_details, {**SCOPED, "pitakId": 20})
    assert response.status is False
    assert response.error_kind == "not_found"
    assert run(services["pitaks"].productivity_details, {"pitakId": 20}).status is True


def test_unknown_pitak_is_not_found(services):
    for view in (
        services["pitaks"].productivity_details,
        services["pitaks"].worker_productivity,
        services["pitaks"].efficiency_analysis,
    ):
        response = run(view, {"pitakId": 999})
        assert response.error_kind == "not_found", view.__name__


def test_missing_pitak_id_is_a_validation_failure(services):
    response = run(services["pitaks"].efficiency_analysis)
    assert response.error_kind == "validation"
    assert response.errors == ["pitakId is required"]


def test_production_timeline(services):
    data = run(services["pitaks"].production_timeline, {"pitakId": 10, "groupBy": "daily"}).data
    assert [row["period"] for row in data["timeline"]] == ["2024-03-13", "2024-03-15"]
    assert data["summary"]["total_periods"] == 2

    limited = run(services["pitaks"].production_timeline, {"pitakId": 10, "groupBy": "daily", "limit": 1}).data
    assert [row["period"] for row in limited["timeline"]] == ["2024-03-15"]

    hourly = run(services["pitaks"].production_timeline, {"pitakId": 10, "groupBy": "hourly"})
    assert hourly.error_kind == "validation"


def test_worker_productivity(services):
    data = run(services["pitaks"].worker_productivity, {"pitakId": 10}).data
    assert [row["worker_name"] for row in data["workers"]] == ["Juan", "Maria"]
    juan = data["workers"][0]
    assert juan["assignments"]["completion_rate"] == 50
    assert 0 <= juan["productivity_score"] <= 100
    assert data["summary"]["total_workers"] == 2


def test_efficiency_analysis(services):
    data = run(services["pitaks"].efficiency_analysis, {**SCOPED, "pitakId": 10}).data
    assert 0 <= data["score"] <= 100
    assert data["efficiency_metrics"]["land_efficiency"] == 10
    assert data["historical_trends"]["periods"] == 1
    assert data["benchmarks"]["average"] == pytest.approx(13.0)


def test_compare_skips_pitaks_outside_session(services):
    data = run(services["pitaks"].compare, {**SCOPED, "pitakIds": "10,11,20"}).data
    assert data["skipped_pitak_ids"] == [20]
    ranks = [row["rankings"]["overall_rank"] for row in data["pitaks"]]
    assert ranks == [1, 2]
    assert data["pitaks"][0]["scores"]["overall"] >= data["pitaks"][1]["scores"]["overall"]
    assert set(data["metrics_comparison"]) == {"completion_rate", "land_utilization", "efficiency", "cost_efficiency"}


def test_compare_requires_ids(services):
    assert run(services["pitaks"].compare).error_kind == "validation"


# ----------------------------------------------------------------------
# dashboard
# ----------------------------------------------------------------------
def test_live_dashboard(services):
    data = run(services["dashboard"].live_dashboard, SCOPED).data
    overview = data["overview"]
    assert overview["assignments"]["today"] == 1
    assert overview["assignments"]["active"] == 1
    assert overview["workers"]["total_active"] == 2
    assert overview["financial"]["today_payments"] == Decimal("2300")
    assert overview["financial"]["active_debts"] == 1
    assert overview["financial"]["total_debt_balance"] == Decimal("13000")
    assert overview["resources"]["active_pitaks"] == 2
    assert [alert["title"] for alert in data["alerts"]] == ["Overdue Debts", "High Debt Workers"]
    assert data["quick_stats"]["debt_collection_rate"] == pytest.approx(1000 / 14000 * 100)


def test_today_stats(services):
    data = run(services["dashboard"].today_stats, SCOPED).data
    comparison = data["comparisons"]["assignments"]
    assert comparison == {"today": 1, "yesterday": 1, "change": 0, "trend": "up"}
    payments = data["comparisons"]["payments"]
    assert payments["today"] == Decimal("2300")
    assert payments["change"] == pytest.approx((2300 - 1740) / 1740 * 100)
    hourly = data["hourly_distribution"]["assignments"]
    assert [row["hour"] for row in hourly] == list(range(24))
    assert hourly[8]["assignments"] == 1
    assert data["hourly_distribution"]["payments"][10]["amount"] == Decimal("2300")
    assert data["status_breakdown"]["active"] == 1


def test_system_alerts(services):
    data = run(services["dashboard"].system_alerts, SCOPED).data
    assert data["count"] == 2
    high_debt = data["alerts"][1]
    assert high_debt["details"] == ["Maria"]


# ----------------------------------------------------------------------
# financial
# ----------------------------------------------------------------------
def test_financial_overview(services):
    data = run(services["financial"].financial_overview, SCOPED).data
    assert data["payments"]["current_month"]["net"] == Decimal("4040")
    assert data["payments"]["current_month"]["count"] == 2
    assert data["payments"]["growth_rate"] == 0
    assert data["debts"]["total_count"] == 2
    assert data["debts"]["collection_rate"] == pytest.approx(1000 / 14000 * 100)
    upcoming = data["upcoming_due_dates"]
    assert [row["debt_id"] for row in upcoming] == [2]
    assert upcoming[0]["worker_name"] == "Juan"
    assert upcoming[0]["days_until_due"] == 17


def test_revenue_trend(services):
    data = run(services["financial"].revenue_trend, {**SCOPED, "period": "week"}).data
    assert data["summary"]["total_net"] == Decimal("4040")
    assert sum(row["transaction_count"] for row in data["trend"]) == 2
    assert [row["method"] for row in data["revenue_by_method"]] == ["cash", "gcash"]
    assert data["top_earners"][0]["worker_name"] == "Juan"
    assert data["growth_metrics"]["period_over_period"] == pytest.approx((2300 - 1740) / 1740 * 100)


def test_debt_collection_rate(services):
    data = run(services["financial"].debt_collection_rate, {**SCOPED, "period": "quarter"}).data
    assert data["overall_metrics"]["debts_count"] == 2
    by_age = {row["age_bucket"]: row["debt_count"] for row in data["collection_by_age"]}
    assert by_age == {"0-30": 1, "31-60": 0, "61-90": 1, "90+": 0}
    assert [row["id"] for row in data["problematic_debts"]] == [1]
    assert data["recommendations"][0].startswith("Consider implementing")


def test_debt_summary(services):
    data = run(services["financial"].debt_summary, SCOPED).data
    assert [row["id"] for row in data["debts"]] == [2, 1]
    assert [row["worker_name"] for row in data["debts"]] == ["Juan", "Maria"]
    assert [row["is_overdue"] for row in data["debts"]] == [False, True]
    assert [row["days_since_incurred"] for row in data["debts"]] == [6, 66]
    summary = data["summary"]
    assert summary["total_debts"] == 2
    assert summary["total_amount"] == Decimal("14000")
    assert summary["total_balance"] == Decimal("13000")
    assert summary["status_counts"] == {"partially_paid": 1, "pending": 1}
    assert summary["overdue_count"] == 1
    assert summary["overdue_balance"] == Decimal("11000")
    assert summary["average_debt"] == 7000
    assert summary["average_age"] == 36
    assert summary["collection_rate"] == pytest.approx(1000 / 14000 * 100)


def test_debt_summary_filters(services):
    pending = run(services["financial"].debt_summary, {**SCOPED, "status": "pending"}).data
    assert [row["id"] for row in pending["debts"]] == [2]

    march = {"startDate": "2024-03-01", "endDate": "2024-03-31"}
    incurred = run(services["financial"].debt_summary, {**SCOPED, "dateRange": march}).data
    assert [row["id"] for row in incurred["debts"]] == [2]

    by_worker = run(services["financial"].debt_summary, {**SCOPED, "workerId": 2}).data
    assert [row["id"] for row in by_worker["debts"]] == [1]

    rejected = run(services["financial"].debt_summary, {"status": "forgiven"})
    assert rejected.error_kind == "validation"


def test_payment_summary(services):
    data = run(services["financial"].payment_summary, SCOPED).data
    assert [row["id"] for row in data["payments"]] == [1, 3, 2]
    assert data["payments"][0]["pitak_location"] == "North"
    summary = data["summary"]
    assert summary["total_payments"] == 3
    assert summary["total_gross"] == Decimal("4640")
    assert summary["total_net"] == Decimal("4540")
    assert summary["status_counts"] == {"completed": 2, "pending": 1}
    assert summary["total_deductions"] == Decimal("100")
    assert summary["deduction_rate"] == pytest.approx(100 / 4640 * 100)
    assert [(row["date"], row["total_net"]) for row in data["daily_stats"]] == [
        ("2024-03-14", Decimal("1740")),
        ("2024-03-15", Decimal("2300")),
    ]
    assert [row["method"] for row in data["payment_methods"]] == ["cash", "gcash"]
    assert data["payment_methods"][0]["percentage"] == pytest.approx(2300 / 4540 * 100)


def test_payment_summary_status_and_worker_filters(services):
    completed = run(services["financial"].payment_summary, {**SCOPED, "status": "completed"}).data
    assert completed["summary"]["total_payments"] == 2
    juan = run(services["financial"].payment_summary, {**SCOPED, "workerId": 1}).data
    assert {row["id"] for row in juan["payments"]} == {1, 3}


def test_realtime_assignments(services):
    scoped = run(services["dashboard"].realtime_assignments, SCOPED).data
    assert [row["id"] for row in scoped["assignments"]] == [2]

    data = run(services["dashboard"].realtime_assignments).data
    first, second = data["assignments"]
    assert (first["id"], second["id"]) == (2, 5)
    assert first["bukid_name"] == "Bukid Uno"
    assert (first["status_color"], first["progress"]) == ("blue", 50)
    assert first["age"] == {"hours": 4, "minutes": 240, "last_updated": datetime(2024, 3, 15, 8)}
    assert (second["pitak_location"], second["status_color"], second["progress"]) == ("Other", "green", 100)
    assert data["summary"]["total_luwang"] == Decimal("11")
    assert data["summary"]["completion_rate"] == 50
    assert data["distribution"]["by_status"] == [
        {"status": "active", "count": 1, "percentage": 50},
        {"status": "completed", "count": 1, "percentage": 50},
    ]
    assert data["top_workers"][0]["assignment_count"] == 2

    limited = run(services["dashboard"].realtime_assignments, {"limit": 1}).data
    assert [row["id"] for row in limited["assignments"]] == [2]
    completed = run(services["dashboard"].realtime_assignments, {"status": "completed"}).data
    assert [row["id"] for row in completed["assignments"]] == [5]
    assert run(services["dashboard"].realtime_assignments, {"status": "paused"}).error_kind == "validation"


def test_recent_payments(services):
    data = run(services["dashboard"].recent_payments, SCOPED).data
    assert [row["id"] for row in data["payments"]] == [1, 3, 2]
    assert data["summary"]["total_amount"] == Decimal("4540")
    assert [row["method"] for row in data["distribution"]["by_method"]] == ["cash", "Unknown", "gcash"]
    assert [(row["worker_name"], row["total_amount"]) for row in data["top_payees"]] == [
        ("Juan", Decimal("2800")),
        ("Maria", Decimal("1740")),
    ]
    limited = run(services["dashboard"].recent_payments, {**SCOPED, "limit": 2}).data
    assert [row["id"] for row in limited["payments"]] == [1, 3]


def test_pending_debts(services):
    pending = run(services["dashboard"].pending_debts, SCOPED).data
    assert [row["id"] for row in pending["debts"]] == [2]
    assert pending["debts"][0]["urgency"] == "low"
    assert pending["summary"]["overdue_debts"] == 0
    assert pending["recommendations"][0] == "Debt collection is on track"

    partial = run(services["dashboard"].pending_debts, {**SCOPED, "status": "partially_paid"}).data
    row = partial["debts"][0]
    assert row["overdue"] == {"is_overdue": True, "days": 15}
    assert row["urgency"] == "medium"
    assert partial["summary"]["total_overdue_amount"] == Decimal("11000")
    assert partial["distribution"]["by_urgency"] == [{"urgency": "medium", "count": 1, "percentage": 100}]
    assert partial["top_debtors"][0]["worker_name"] == "Maria"
    assert partial["recommendations"][0] == "Follow up on overdue debts immediately"

    overdue_only = run(services["dashboard"].pending_debts, {**SCOPED, "overdueOnly": True}).data
    assert overdue_only["debts"] == []
    assert overdue_only["summary"]["total_debts"] == 0
