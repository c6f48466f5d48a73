"""Ranking and cross-entity comparison."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Sequence, TypeVar

from farmops.core.stats import mean, standard_deviation

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ranked:
    item: object
    score: float
    rank: int
    percentile: float


def rank(items: Sequence[T], score: Callable[[T], float]) -> list[Ranked]:
    """Stable descending sort; ``rank = index + 1``, ``percentile = (N - index) / N * 100``.

    Equal scores keep their input order and still receive distinct ranks.
    """

    scored = [(item, float(score(item))) for item in items]
    ordered = sorted(scored, key=lambda pair: pair[1], reverse=True)
    total = len(ordered)
    return [
        Ranked(item=item, score=value, rank=index + 1, percentile=(total - index) / total * 100)
        for index, (item, value) in enumerate(ordered)
    ]


def metric_statistics(values: Sequence[float]) -> dict[str, object]:
    if not values:
        return {"average": 0.0, "range": {"min": 0.0, "max": 0.0}, "standard_deviation": 0.0}
    return {
        "average": mean(values),
        "range": {"min": float(min(values)), "max": float(max(values))},
        "standard_deviation": standard_deviation(values),
    }


def compare_metrics(rows: Sequence[Mapping[str, float]], metrics: Sequence[str]) -> dict[str, dict[str, object]]:
    """Mean, range and standard deviation per metric; absent values count as 0."""

    return {metric: metric_statistics([float(row.get(metric) or 0) for row in rows]) for metric in metrics}


def consistency_score(scores: Sequence[float]) -> dict[str, object]:
    spread = standard_deviation(scores)
    if spread < 10:
        rating = "high"
    elif spread < 20:
        rating = "medium"
    else:
        rating = "low"
    return {"score": 100 - min(spread * 10, 100), "rating": rating, "std_dev": spread}


def categorize(
    items: Sequence[T],
    score: Callable[[T], float],
    bands: Sequence[tuple[str, float]],
    fallback: str,
) -> dict[str, dict[str, object]]:
    """Split ``items`` into score bands with count and share of the total.

    ``bands`` is ordered from the highest lower bound down.
    """

    groups: dict[str, list[T]] = {name: [] for name, _ in bands}
    groups[fallback] = []
    for item in items:
        value = float(score(item))
        for name, bound in bands:
            if value >= bound:
                groups[name].append(item)
                break
        else:
            groups[fallback].append(item)
    total = len(items)
    return {
        name: {"count": len(members), "items": members, "percentage": len(members) / total * 100 if total else 0.0}
        for name, members in groups.items()
    }


def top_n(items: Sequence[T], score: Callable[[T], float], limit: int) -> list[T]:
    return [entry.item for entry in rank(items, score)[:limit]]  # type: ignore[misc]


def bottom_n(items: Sequence[T], score: Callable[[T], float], limit: int) -> list[T]:
    return sorted(items, key=score)[:limit]
