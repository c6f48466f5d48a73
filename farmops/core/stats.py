"""Statistical helpers shared by the analytics views.

Every function accepts any real numbers (``int``, ``float`` or ``Decimal``)
and returns ``float``.  Degenerate inputs (empty sequences, zero baselines)
produce ``0`` instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence


def _floats(values: Iterable[object]) -> list[float]:
    return [float(value) for value in values]  # type: ignore[arg-type]


def mean(values: Iterable[object]) -> float:
    data = _floats(values)
    if not data:
        return 0.0
    return sum(data) / len(data)


def ratio(numerator: object, denominator: object, scale: float = 100.0) -> float:
    """Return ``numerator / denominator * scale`` or ``0`` for a zero denominator."""

    denominator = float(denominator)  # type: ignore[arg-type]
    if denominator == 0:
        return 0.0
    return float(numerator) / denominator * scale  # type: ignore[arg-type]


def percentile(values: Sequence[object], p: float) -> float:
    """Linear-interpolated percentile, ``p`` in ``[0, 100]``."""

    if not 0 <= p <= 100:
        raise ValueError("p must be between 0 and 100")
    data = sorted(_floats(values))
    if not data:
        return 0.0
    index = (p / 100) * (len(data) - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return data[lower]
    return data[lower] + (index - lower) * (data[upper] - data[lower])


def percentile_rank(values: Sequence[object], value: object) -> float:
    """Share of ``values`` strictly below ``value``, as a percentage."""

    data = _floats(values)
    if not data:
        return 0.0
    target = float(value)  # type: ignore[arg-type]
    below = sum(1 for item in data if item < target)
    return below / len(data) * 100


def standard_deviation(values: Iterable[object]) -> float:
    """Population standard deviation."""

    data = _floats(values)
    if not data:
        return 0.0
    centre = sum(data) / len(data)
    variance = sum((item - centre) ** 2 for item in data) / len(data)
    return math.sqrt(variance)


def growth_rate(first: object, last: object) -> float:
    first = float(first)  # type: ignore[arg-type]
    if first == 0:
        return 0.0
    return (float(last) - first) / first * 100  # type: ignore[arg-type]


def period_changes(series: Sequence[object]) -> list[float]:
    data = _floats(series)
    return [growth_rate(previous, current) for previous, current in zip(data, data[1:])]


def consistency_label(spread: float, *, high: float = 10, medium: float = 25) -> str:
    if spread < high:
        return "high"
    if spread < medium:
        return "medium"
    return "low"


@dataclass(frozen=True, slots=True)
class Volatility:
    value: float
    consistency: str


def volatility(series: Sequence[object]) -> Volatility:
    """Standard deviation of the period-over-period percentage changes."""

    if len(series) < 2:
        return Volatility(value=0.0, consistency="insufficient data")
    spread = standard_deviation(period_changes(series))
    return Volatility(value=spread, consistency=consistency_label(spread))


@dataclass(frozen=True, slots=True)
class TrendAnalysis:
    overall_trend: float
    volatility: float
    growth_rate: float
    consistency: str
    trend_type: str

    @property
    def direction(self) -> str:
        if self.overall_trend > 0:
            return "improving"
        if self.overall_trend < 0:
            return "declining"
        return "stable"

    def as_dict(self) -> dict[str, object]:
        return {
            "overall_trend": self.overall_trend,
            "volatility": self.volatility,
            "growth_rate": self.growth_rate,
            "consistency": self.consistency,
            "trend_type": self.trend_type,
        }


def analyze_trend(series: Sequence[object]) -> TrendAnalysis:
    """Summarise a chronologically ordered series.

    ``overall_trend`` is the growth from the first to the last value,
    ``growth_rate`` the mean period-over-period change.
    """

    if len(series) < 2:
        return TrendAnalysis(0.0, 0.0, 0.0, "insufficient data", "stable")
    overall = growth_rate(series[0], series[-1])
    changes = period_changes(series)
    spread = volatility(series)
    if overall > 5:
        trend_type = "growing"
    elif overall < -5:
        trend_type = "declining"
    else:
        trend_type = "stable"
    return TrendAnalysis(
        overall_trend=overall,
        volatility=spread.value,
        growth_rate=mean(changes),
        consistency=spread.consistency,
        trend_type=trend_type,
    )


def classify_scores(
    scores: Sequence[object],
    bands: Sequence[tuple[str, float]],
    fallback: str,
) -> dict[str, int]:
    """Count scores per band.

    ``bands`` is ordered from the highest lower bound down; a score falls in
    the first band whose bound it reaches, otherwise in ``fallback``.
    """

    counts = {name: 0 for name, _ in bands}
    counts[fallback] = 0
    for score in _floats(scores):
        for name, bound in bands:
            if score >= bound:
                counts[name] += 1
                break
        else:
            counts[fallback] += 1
    return counts
