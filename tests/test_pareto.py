"""Tests for the Pareto analysis and threshold aggregation."""

import random

import pytest

from categories import CategoryDataset, CategoryRecord
from pareto import (
    PARETO_COLUMNS,
    aggregate_threshold,
    analyze,
    generate_chart,
    pareto_table,
    round2,
)


def rec(label, value, threshold=0.0):
    return CategoryRecord.new(label=label, value=value, threshold_percent=threshold)


def as_tuples(results):
    return [(r.label, r.percentage, r.cumulative_percentage) for r in results]


def test_three_categories():
    results = analyze([rec("A", 50), rec("B", 30), rec("C", 20)])
    assert as_tuples(results) == [("A", 50.0, 50.0), ("B", 30.0, 80.0), ("C", 20.0, 100.0)]


def test_input_order_does_not_matter_for_ranking():
    results = analyze([rec("C", 20), rec("A", 50), rec("B", 30)])
    assert [r.label for r in results] == ["A", "B", "C"]


def test_tie_keeps_input_order():
    results = analyze([rec("X", 10), rec("Y", 10)])
    assert as_tuples(results) == [("X", 50.0, 50.0), ("Y", 50.0, 100.0)]


def test_ties_stay_stable_among_other_values():
    results = analyze([rec("a", 5), rec("b", 10), rec("c", 5), rec("d", 10), rec("e", 5)])
    assert [r.label for r in results] == ["b", "d", "a", "c", "e"]


def test_invalid_records_are_dropped_wherever_they_are():
    records = [
        rec("", 100),
        rec("A", 30),
        rec("zero", 0),
        rec("B", 10),
        rec("negative", -5),
    ]
    results = analyze(records)
    assert [r.label for r in results] == ["A", "B"]
    assert as_tuples(results) == [("A", 75.0, 75.0), ("B", 25.0, 100.0)]


@pytest.mark.parametrize("records", [[], [rec("", 5)], [rec("A", 0), rec("B", -1)]])
def test_nothing_valid_gives_empty_result(records):
    assert analyze(records) == []
    tab = pareto_table(records)
    assert tab.empty
    assert list(tab.columns) == PARETO_COLUMNS


def test_cumulative_accumulates_rounded_percentages():
    results = analyze([rec("A", 1), rec("B", 1), rec("C", 1)])
    assert [r.percentage for r in results] == [33.33, 33.33, 33.33]
    assert [r.cumulative_percentage for r in results] == [33.33, 66.66, 99.99]


def test_round2_rounds_half_up_on_exact_value():
    assert round2(0.125) == 0.13
    assert round2(12.5) == 12.5
    # 1.005 is stored as 1.00499999...
    assert round2(1.005) == 1.0
    assert round2(2 / 3 * 100) == 66.67


def test_pareto_table_columns_and_values():
    tab = pareto_table([rec("B", 1), rec("A", 3)])
    assert list(tab.columns) == PARETO_COLUMNS
    assert tab["Category"].tolist() == ["A", "B"]
    assert tab["Value"].tolist() == [3.0, 1.0]
    assert tab["Percent"].tolist() == [75.0, 25.0]
    assert tab["Cumulative %"].tolist() == [75.0, 100.0]


def test_accepts_a_dataset_snapshot():
    ds = CategoryDataset((rec("A", 2), rec("B", 6)))
    assert [r.label for r in analyze(ds)] == ["B", "A"]


def test_random_inputs_keep_pareto_properties():
    rng = random.Random(1234)
    for _ in range(200):
        n = rng.randint(1, 25)
        records = [rec(f"c{i}", rng.choice([rng.randint(1, 50), round(rng.uniform(0.01, 999), 3)])) for i in range(n)]
        results = analyze(records)

        assert len(results) == n
        pct = [r.percentage for r in results]
        cum = [r.cumulative_percentage for r in results]
        assert all(a >= b for a, b in zip(pct, pct[1:]))
        assert all(a <= b for a, b in zip(cum, cum[1:]))
        assert abs(cum[-1] - 100) <= 0.01 * n + 1e-9


# --------------------------
# Threshold
# --------------------------
def test_threshold_defaults_to_80_when_all_zero():
    assert aggregate_threshold([rec("A", 5, 0), rec("B", 3, 0)]) == 80


def test_threshold_defaults_to_80_without_valid_records():
    assert aggregate_threshold([]) == 80
    assert aggregate_threshold([rec("", 5, 50)]) == 80


def test_threshold_is_mean_of_valid_records_only():
    records = [rec("A", 5, 60), rec("B", 3, 70), rec("", 10, 100), rec("C", 0, 100)]
    assert aggregate_threshold(records) == pytest.approx(65.0)


def test_threshold_zero_and_nonzero_mix():
    assert aggregate_threshold([rec("A", 5, 0), rec("B", 5, 90)]) == pytest.approx(45.0)


# --------------------------
# Generate trigger
# --------------------------
def test_generate_chart_without_valid_data_is_none():
    assert generate_chart(CategoryDataset()) is None


def test_generate_chart_bundles_results_and_threshold():
    chart = generate_chart([rec("A", 50, 70), rec("B", 50, 90)], "Unit", "Defects")
    assert chart is not None
    assert chart.threshold == pytest.approx(80.0)
    assert chart.x_label == "Unit"
    assert chart.y_label == "Defects"
    assert chart.records() == [
        {"label": "A", "percentage": 50.0, "cumulativePercentage": 50.0},
        {"label": "B", "percentage": 50.0, "cumulativePercentage": 100.0},
    ]
    assert chart.to_frame()["Cumulative %"].tolist() == [50.0, 100.0]


def test_generate_chart_default_labels():
    chart = generate_chart([rec("A", 1)])
    assert (chart.x_label, chart.y_label) == ("Category", "Value")
    assert chart.threshold == 80
