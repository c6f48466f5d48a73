"""Load a directory of CSV / Excel tables into the in-memory record store.

One file per collection (``assignments``, ``workers``, ``bukids``,
``pitaks``, ``payments``, ``debts``) with a ``.csv``, ``.xlsx`` or ``.xls``
suffix.  Column headers may use camelCase (``luwangCount``) or snake_case.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pandas as pd
from pydantic import BaseModel, ValidationError

from farmops.core.schema import Assignment, Bukid, Debt, Payment, Pitak, Worker
from farmops.infrastructure.records import InMemoryRecordStore

logger = logging.getLogger(__name__)

SUFFIXES = (".csv", ".xlsx", ".xls")

COLUMN_ALIASES = {
    "luwang": "luwang_count",
    "total_debt": "total_debt_deduction",
    "debt_deduction": "total_debt_deduction",
}

_CAMEL = re.compile(r"(?<=[a-z0-9])([A-Z])")


@dataclass(slots=True)
class SnapshotLoadResult:
    loaded: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)


def _snake(column: object) -> str:
    text = _CAMEL.sub(r"_\1", str(column).strip()).lower().replace(" ", "_")
    return COLUMN_ALIASES.get(text, text)


def _normalise_columns(dataframe: pd.DataFrame) -> pd.DataFrame:
    renamed = {col: _snake(col) for col in dataframe.columns}
    dataframe = dataframe.rename(columns=renamed)
    return dataframe.dropna(how="all")


def _safe_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        decimal_value = Decimal(str(value))
    except Exception:  # pragma: no cover - invalid number
        return None
    if not decimal_value.is_finite():
        return None
    return decimal_value


def _clean(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, float):
        return _safe_decimal(value)
    return value


def _read(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        dataframe = pd.read_csv(path)
    else:
        dataframe = pd.read_excel(path)
    return _normalise_columns(dataframe)


def _find_table(directory: Path, name: str) -> Path | None:
    for suffix in SUFFIXES:
        candidate = directory / f"{name}{suffix}"
        if candidate.exists():
            return candidate
    return None


def _integral(value: Any) -> Any:
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return value


TABLES: tuple[tuple[str, type[BaseModel], Callable[[InMemoryRecordStore], Callable[[Any], None]]], ...] = (
    ("workers", Worker, lambda store: store.add_worker),
    ("bukids", Bukid, lambda store: store.add_bukid),
    ("pitaks", Pitak, lambda store: store.add_pitak),
    ("assignments", Assignment, lambda store: store.add_assignment),
    ("payments", Payment, lambda store: store.add_payment),
    ("debts", Debt, lambda store: store.add_debt),
)

ID_COLUMNS = {"id", "worker_id", "pitak_id", "bukid_id", "session_id"}


def load_snapshot(directory: Path, store: InMemoryRecordStore) -> SnapshotLoadResult:
    """Read every known table under ``directory`` into ``store``.

    Rows failing model validation are skipped and counted.
    """

    if not directory.is_dir():
        raise FileNotFoundError(f"snapshot directory not found: {directory}")

    result = SnapshotLoadResult()
    for name, model, adder in TABLES:
        path = _find_table(directory, name)
        if path is None:
            continue
        dataframe = _read(path)
        add = adder(store)
        loaded = skipped = 0
        for index, row in dataframe.iterrows():
            payload = {str(key): _clean(value) for key, value in row.items()}
            for column in ID_COLUMNS & payload.keys():
                payload[column] = _integral(payload[column])
            try:
                add(model.model_validate(payload))
            except ValidationError as exc:
                skipped += 1
                logger.warning("skipping %s row %s: %s", name, index, exc.errors()[0].get("msg"))
                continue
            loaded += 1
        result.loaded[name] = loaded
        if skipped:
            result.skipped[name] = skipped
        logger.info("loaded %d %s from %s", loaded, name, path.name)
    return result
