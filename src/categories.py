# src/categories.py
"""
Category records entered by the user.

Every edit returns a new ``CategoryDataset`` snapshot; the analysis only ever
sees a snapshot, never a list that is still being edited.
"""
import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("label", "value", "threshold_percent")
NUMERIC_FIELDS = ("value", "threshold_percent")


def to_number(raw) -> float:
    """Coerce form input to a float; blanks, garbage and NaN become 0."""
    if raw is None:
        return 0.0
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    label: str = ""
    value: float = 0.0
    threshold_percent: float = 0.0

    @classmethod
    def new(cls, label: str = "", value: float = 0.0, threshold_percent: float = 0.0) -> "CategoryRecord":
        return cls(
            id=uuid.uuid4().hex,
            label=label,
            value=to_number(value),
            threshold_percent=to_number(threshold_percent),
        )

    @property
    def is_valid(self) -> bool:
        return bool(self.label) and self.value > 0


def _default_records() -> Tuple[CategoryRecord, ...]:
    return (CategoryRecord.new(),)


@dataclass(frozen=True)
class CategoryDataset:
    """Ordered, never-empty collection of category records."""
    records: Tuple[CategoryRecord, ...] = field(default_factory=_default_records)

    def __post_init__(self):
        records = tuple(self.records)
        if not records:
            records = _default_records()
        object.__setattr__(self, "records", records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def _index_of(self, record_id: str) -> int:
        for i, rec in enumerate(self.records):
            if rec.id == record_id:
                return i
        raise KeyError(f"No category with id '{record_id}'")

    def get(self, record_id: str) -> CategoryRecord:
        return self.records[self._index_of(record_id)]

    def add(self, record: Optional[CategoryRecord] = None) -> "CategoryDataset":
        record = record or CategoryRecord.new()
        return CategoryDataset(self.records + (record,))

    def remove(self, record_id: str) -> "CategoryDataset":
        idx = self._index_of(record_id)
        if len(self.records) == 1:
            logger.debug("Refusing to remove the last category '%s'", record_id)
            return self
        return CategoryDataset(self.records[:idx] + self.records[idx + 1:])

    def update(self, record_id: str, field_name: str, value) -> "CategoryDataset":
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field_name}' is not editable; expected one of {EDITABLE_FIELDS}")
        idx = self._index_of(record_id)
        if field_name in NUMERIC_FIELDS:
            value = to_number(value)
        else:
            value = "" if value is None else str(value)
        updated = replace(self.records[idx], **{field_name: value})
        return CategoryDataset(self.records[:idx] + (updated,) + self.records[idx + 1:])

    def valid_records(self) -> Tuple[CategoryRecord, ...]:
        return tuple(rec for rec in self.records if rec.is_valid)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {"id": r.id, "label": r.label, "value": r.value, "threshold_percent": r.threshold_percent}
                for r in self.records
            ],
            columns=["id", "label", "value", "threshold_percent"],
        )


def dataset_from_frame(
    df: pd.DataFrame,
    category_col: str,
    weight_col: Optional[str] = None,
    threshold_col: Optional[str] = None,
) -> CategoryDataset:
    """
    Build a dataset from a table, one record per distinct category.

    Weights are summed per category; without a weight column the number of
    rows per category is the weight. Thresholds are averaged per category.
    Categories keep the order in which they first appear.
    """
    if df is None or df.empty:
        return CategoryDataset()
    if category_col not in df.columns:
        raise KeyError(f"Column '{category_col}' not found in {list(df.columns)}")

    work = df.copy()
    work[category_col] = work[category_col].fillna("").astype(str).str.strip()

    grouped = work.groupby(category_col, sort=False, dropna=False)
    if weight_col is None:
        weights = grouped.size()
    else:
        work[weight_col] = pd.to_numeric(work[weight_col], errors="coerce").fillna(0)
        weights = work.groupby(category_col, sort=False, dropna=False)[weight_col].sum()

    if threshold_col is not None:
        work[threshold_col] = pd.to_numeric(work[threshold_col], errors="coerce").fillna(0)
        thresholds = work.groupby(category_col, sort=False, dropna=False)[threshold_col].mean()
    else:
        thresholds = pd.Series(0.0, index=weights.index)

    records = [
        CategoryRecord.new(label=label, value=weights[label], threshold_percent=thresholds[label])
        for label in weights.index
    ]
    logger.debug("Loaded %d categories from %d rows", len(records), len(df))
    return CategoryDataset(tuple(records))
