import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.core.ranking import bottom_n, categorize, compare_metrics, consistency_score, rank, top_n


def test_ranks_are_a_permutation():
    items = [("a", 3), ("b", 9), ("c", 1), ("d", 7), ("e", 5)]
    ranked = rank(items, lambda item: item[1])
    ranks = [entry.rank for entry in ranked]
    assert sorted(ranks) == list(range(1, len(items) + 1))
    assert sum(ranks) == len(items) * (len(items) + 1) // 2
    assert [entry.item[0] for entry in ranked] == ["b", "d", "e", "a", "c"]
    assert ranked[0].percentile == 100
    assert ranked[-1].percentile == pytest.approx(20)


def test_ties_keep_input_order():
    ranked = rank([("first", 5), ("second", 7), ("third", 5)], lambda item: item[1])
    assert [entry.item[0] for entry in ranked] == ["second", "first", "third"]
    assert [entry.rank for entry in ranked] == [1, 2, 3]


def test_rank_of_nothing_is_empty():
    assert rank([], lambda item: item) == []


def test_compare_metrics_treats_missing_values_as_zero():
    stats = compare_metrics([{"score": 10}, {"score": 30}, {}], ["score"])
    assert stats["score"]["average"] == pytest.approx(40 / 3)
    assert stats["score"]["range"] == {"min": 0.0, "max": 30.0}


def test_consistency_score_ratings():
    assert consistency_score([50, 50]) == {"score": 100, "rating": "high", "std_dev": 0.0}
    medium = consistency_score([40, 70])
    assert medium["rating"] == "medium"
    assert medium["score"] == 0
    assert consistency_score([0, 100])["rating"] == "low"


def test_categorize_counts_every_item_once():
    bands = categorize([95, 80, 60, 10], lambda value: value, [("excellent", 90), ("good", 75)], "other")
    assert sum(band["count"] for band in bands.values()) == 4
    assert bands["excellent"]["items"] == [95]
    assert bands["other"]["percentage"] == 50


def test_top_and_bottom_n():
    values = [4, 9, 1, 7]
    assert top_n(values, lambda value: value, 2) == [9, 7]
    assert bottom_n(values, lambda value: value, 2) == [1, 4]
