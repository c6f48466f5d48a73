import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.core.stats import (
    analyze_trend,
    classify_scores,
    growth_rate,
    mean,
    percentile,
    percentile_rank,
    ratio,
    standard_deviation,
    volatility,
)


def test_percentile_interpolates_between_ranks():
    assert percentile([10, 20, 30, 40], 75) == pytest.approx(32.5)
    assert percentile([3, 1, 2], 50) == 2
    assert percentile([], 50) == 0


def test_percentile_rejects_out_of_range():
    with pytest.raises(ValueError):
        percentile([1, 2], 101)


def test_percentile_rank_counts_strictly_lower_values():
    assert percentile_rank([10, 20, 30, 40], 30) == 50
    assert percentile_rank([], 5) == 0


def test_growth_rate_and_ratio_handle_zero_baselines():
    assert growth_rate(100, 150) == 50
    assert growth_rate(0, 50) == 0
    assert ratio(1, 0) == 0
    assert ratio(1, 4) == 25
    assert ratio(3, 4, scale=1) == 0.75


def test_population_standard_deviation():
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert standard_deviation([]) == 0
    assert mean([]) == 0


def test_trend_analysis_classifies_direction():
    growing = analyze_trend([10, 20])
    assert growing.overall_trend == 100
    assert growing.trend_type == "growing"
    assert growing.direction == "improving"

    flat = analyze_trend([5])
    assert flat.consistency == "insufficient data"
    assert flat.direction == "stable"

    assert analyze_trend([100, 50]).trend_type == "declining"


def test_trend_volatility_matches_volatility():
    series = [100, 120, 90, 135]
    trend = analyze_trend(series)
    spread = volatility(series)
    assert trend.volatility == spread.value
    assert trend.consistency == spread.consistency


def test_volatility_needs_two_points():
    assert volatility([1]).consistency == "insufficient data"
    steady = volatility([100, 110, 121])
    assert steady.value == pytest.approx(0.0)
    assert steady.consistency == "high"


def test_classify_scores_uses_first_matching_band():
    counts = classify_scores([95, 80, 55, 10], [("high", 80), ("medium", 50)], "low")
    assert counts == {"high": 2, "medium": 1, "low": 1}
