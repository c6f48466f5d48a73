import sys
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.core.thresholds import Thresholds, configure_thresholds, get_thresholds, load_thresholds


def test_bundled_config_matches_defaults():
    assert load_thresholds() == Thresholds()


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_thresholds(tmp_path / "absent.yaml") == Thresholds()


def test_sections_map_onto_fields():
    thresholds = Thresholds.from_mapping(
        {
            "alerts": {"stale_assignment_days": 5, "debt_balance_limit": 2500.5},
            "debts": {"collection_target_rate": 60},
            "payroll": {"rate_per_luwang": "250"},
            "unknown": {"anything": 1},
        }
    )
    assert thresholds.stale_assignment_days == 5
    assert thresholds.debt_balance_limit == Decimal("2500.5")
    assert thresholds.debts_collection_target_rate == 60
    assert thresholds.payroll_rate_per_luwang == Decimal("250")
    assert thresholds.completion_target_rate == 70


def test_environment_override(tmp_path, monkeypatch):
    config = tmp_path / "thresholds.yaml"
    config.write_text("dashboard:\n  recent_activity_limit: 5\n", encoding="utf-8")
    monkeypatch.setenv("FARMOPS_THRESHOLDS", str(config))
    configure_thresholds(None)
    try:
        assert get_thresholds().dashboard_recent_activity_limit == 5
    finally:
        configure_thresholds(None)
