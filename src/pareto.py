# src/pareto.py
"""
Pareto analysis of weighted categories.

Valid categories (non-empty label, positive value) are ranked by value,
largest first, and each gets its share of the total plus the running
cumulative share. Percentages are rounded to two decimals and the
cumulative column is the rounded running sum of the *rounded* percentages,
so the last entry can drift from 100 by up to 0.01 per category.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from categories import CategoryRecord
from config import DEFAULT_THRESHOLD, DEFAULT_X_LABEL, DEFAULT_Y_LABEL

logger = logging.getLogger(__name__)

PARETO_COLUMNS = ["Category", "Value", "Percent", "Cumulative %"]

_CENT = Decimal("0.01")


def round2(x: float) -> float:
    """Round to 2 decimals, halves away from zero (on the exact float value)."""
    return float(Decimal(float(x)).quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AnalysisResult:
    label: str
    percentage: float
    cumulative_percentage: float

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "percentage": self.percentage,
            "cumulativePercentage": self.cumulative_percentage,
        }


def _valid(records: Iterable[CategoryRecord]) -> List[CategoryRecord]:
    return [r for r in records if r.label and r.value > 0]


def pareto_table(records: Iterable[CategoryRecord]) -> pd.DataFrame:
    """
    Returns a Pareto summary with columns:
      ['Category', 'Value', 'Percent', 'Cumulative %']
    Empty (but with those columns) when no record is valid.
    """
    valid = _valid(records)
    if not valid:
        return pd.DataFrame(columns=PARETO_COLUMNS)

    tab = pd.DataFrame({
        "Category": [r.label for r in valid],
        "Value": [float(r.value) for r in valid],
    })
    # mergesort is stable: equal values keep their input order
    tab = tab.sort_values("Value", ascending=False, kind="mergesort").reset_index(drop=True)
    total = tab["Value"].sum()
    tab["Percent"] = (tab["Value"] / total * 100).map(round2)
    tab["Cumulative %"] = tab["Percent"].cumsum().map(round2)
    return tab[PARETO_COLUMNS]


def analyze(records: Iterable[CategoryRecord]) -> List[AnalysisResult]:
    records = list(records)
    tab = pareto_table(records)
    logger.debug("Pareto analysis: %d of %d categories valid", len(tab), len(records))
    return [
        AnalysisResult(label=label, percentage=float(pct), cumulative_percentage=float(cum))
        for label, _value, pct, cum in tab.itertuples(index=False, name=None)
    ]


def aggregate_threshold(records: Iterable[CategoryRecord]) -> float:
    """Mean target percentage of the valid records, or the default when that is 0/undefined."""
    valid = _valid(records)
    if not valid:
        return DEFAULT_THRESHOLD
    mean = sum(r.threshold_percent for r in valid) / len(valid)
    if not mean or pd.isna(mean):
        return DEFAULT_THRESHOLD
    return float(mean)


@dataclass(frozen=True)
class ParetoChartData:
    """Everything the chart renderer needs for one generated chart."""
    results: Tuple[AnalysisResult, ...]
    threshold: float
    x_label: str = DEFAULT_X_LABEL
    y_label: str = DEFAULT_Y_LABEL

    def records(self) -> List[dict]:
        return [r.as_dict() for r in self.results]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(r.label, r.percentage, r.cumulative_percentage) for r in self.results],
            columns=["Category", "Percent", "Cumulative %"],
        )


def generate_chart(
    records: Iterable[CategoryRecord],
    x_label: Optional[str] = DEFAULT_X_LABEL,
    y_label: Optional[str] = DEFAULT_Y_LABEL,
) -> Optional[ParetoChartData]:
    """
    Run the analysis and the threshold aggregation over one snapshot.
    Returns None when there is nothing to chart.
    """
    snapshot = tuple(records)
    results = analyze(snapshot)
    if not results:
        logger.info("No valid categories to chart (%d entered)", len(snapshot))
        return None
    threshold = aggregate_threshold(snapshot)
    logger.debug("Generated Pareto chart with %d categories, threshold %s", len(results), threshold)
    return ParetoChartData(
        results=tuple(results),
        threshold=threshold,
        x_label=x_label if x_label is not None else DEFAULT_X_LABEL,
        y_label=y_label if y_label is not None else DEFAULT_Y_LABEL,
    )
