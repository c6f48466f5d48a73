import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.core.schema import Assignment, Payment
from farmops.core.scoring import (
    EfficiencyMetrics,
    capped_score,
    category_score,
    cost_per_luwang,
    efficiency_metrics,
    luwang_per_day,
    overall_comparison_score,
    pitak_kpis,
    productivity_score,
    resource_utilization,
    time_efficiency,
    top_performer_score,
)


def _completed(record_id: int, day: int, luwang: str, finished: int | None = None) -> Assignment:
    return Assignment(
        id=record_id,
        worker_id=record_id,
        pitak_id=1,
        luwang_count=Decimal(luwang),
        status="completed",
        assignment_date=datetime(2024, 3, day, 8),
        updated_at=datetime(2024, 3, finished or day, 8),
    )


def test_productivity_score_formula():
    assert productivity_score(80, 80, 12) == 86
    assert productivity_score(100, 100, 50) == 100
    assert productivity_score(0, 0, 0) == 0


def test_capped_score_rounds_half_up():
    assert capped_score(2.5) == 3
    assert capped_score(2.49) == 2
    assert capped_score(140) == 100


def test_efficiency_score_weights():
    metrics = EfficiencyMetrics(
        land_efficiency=50,
        labor_efficiency=80,
        cost_efficiency=100,
        time_efficiency=60,
        resource_utilization=90,
    )
    assert metrics.normalized_cost_efficiency == 60
    assert metrics.score == 65
    assert EfficiencyMetrics(cost_efficiency=400).normalized_cost_efficiency == 0


def test_time_efficiency_ignores_same_day_completions():
    records = [_completed(1, 1, "5", finished=3), _completed(2, 4, "5")]
    assert time_efficiency(records, datetime(2024, 3, 10)) == 80
    assert time_efficiency([], datetime(2024, 3, 10)) == 0


def test_resource_utilization_is_against_eighty_percent_capacity():
    assert resource_utilization(Decimal("40"), Decimal("100")) == 50
    assert resource_utilization(Decimal("200"), Decimal("100")) == 100
    assert resource_utilization(Decimal("10"), Decimal("0")) == 0


def test_efficiency_metrics_from_records():
    records = [_completed(1, 1, "20", finished=3), _completed(2, 2, "20", finished=3)]
    payments = [Payment(id=1, worker_id=1, net_pay=Decimal("4000"), status="completed")]
    metrics = efficiency_metrics(records, payments, Decimal("100"), datetime(2024, 3, 10))
    assert metrics.land_efficiency == 40
    assert metrics.labor_efficiency == 100
    assert metrics.cost_efficiency == 100
    assert metrics.time_efficiency == 85
    assert metrics.resource_utilization == 50


def test_category_and_overall_scores():
    assert category_score({"completion_rate": 80, "land_utilization": None}) == 80
    assert category_score({"completion_rate": 80, "land_utilization": 40}) == 60
    assert category_score({}) == 0
    assert overall_comparison_score(100, 100, 100) == pytest.approx(100)
    assert overall_comparison_score(50, 0, 0) == pytest.approx(20)


def test_pitak_kpis():
    records = [_completed(1, 1, "10"), _completed(2, 5, "10")]
    kpis = pitak_kpis(records, Decimal("40"), Decimal("230"))
    assert kpis.land_utilization == 50
    assert kpis.assignment_efficiency == 100
    assert kpis.luwang_per_day == 5
    assert kpis.worker_count == 2
    assert kpis.cost_per_luwang == 230
    assert luwang_per_day([]) == 0
    assert cost_per_luwang(Decimal("0"), Decimal("230")) == 0


def test_top_performer_score_weights():
    assert top_performer_score(100, 50) == pytest.approx(80)
