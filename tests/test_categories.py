"""Tests for category records and dataset snapshots."""

import pandas as pd
import pytest

from categories import CategoryDataset, CategoryRecord, dataset_from_frame, to_number


def test_new_dataset_has_one_default_record():
    ds = CategoryDataset()
    assert len(ds) == 1
    only = ds.records[0]
    assert (only.label, only.value, only.threshold_percent) == ("", 0.0, 0.0)
    assert only.id


def test_empty_tuple_still_gives_one_record():
    assert len(CategoryDataset(())) == 1


def test_ids_are_unique():
    ids = {CategoryRecord.new().id for _ in range(50)}
    assert len(ids) == 50


def test_add_returns_new_snapshot():
    ds = CategoryDataset()
    ds2 = ds.add()
    assert len(ds) == 1
    assert len(ds2) == 2
    assert ds2.records[0] is ds.records[0]


def test_remove_last_record_is_noop():
    ds = CategoryDataset()
    assert ds.remove(ds.records[0].id) is ds


def test_remove_record():
    ds = CategoryDataset().add().add()
    gone = ds.records[1].id
    ds2 = ds.remove(gone)
    assert len(ds2) == 2
    assert gone not in [r.id for r in ds2]
    assert len(ds) == 3


def test_remove_unknown_id():
    with pytest.raises(KeyError):
        CategoryDataset().add().remove("nope")


def test_update_replaces_one_field():
    ds = CategoryDataset()
    rid = ds.records[0].id
    ds2 = ds.update(rid, "label", "NGD").update(rid, "value", "12.5").update(rid, "threshold_percent", 75)
    r = ds2.get(rid)
    assert (r.id, r.label, r.value, r.threshold_percent) == (rid, "NGD", 12.5, 75.0)
    assert ds.get(rid).label == ""


def test_update_coerces_bad_numbers_to_zero():
    ds = CategoryDataset()
    rid = ds.records[0].id
    ds = ds.update(rid, "value", 4)
    assert ds.update(rid, "value", "abc").get(rid).value == 0.0
    assert ds.update(rid, "value", float("nan")).get(rid).value == 0.0


def test_update_rejects_unknown_field():
    ds = CategoryDataset()
    with pytest.raises(ValueError):
        ds.update(ds.records[0].id, "id", "x")


def test_update_unknown_id():
    with pytest.raises(KeyError):
        CategoryDataset().update("missing", "label", "A")


def test_valid_records():
    ds = CategoryDataset((
        CategoryRecord.new("A", 1),
        CategoryRecord.new("", 5),
        CategoryRecord.new("B", 0),
        CategoryRecord.new("C", 2),
    ))
    assert [r.label for r in ds.valid_records()] == ["A", "C"]


@pytest.mark.parametrize("raw,expected", [
    ("3.5", 3.5), (None, 0.0), ("", 0.0), ("x", 0.0), (float("inf"), 0.0), (-2, -2.0),
])
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_to_frame_roundtrip_columns():
    ds = CategoryDataset((CategoryRecord.new("A", 1, 50),))
    frame = ds.to_frame()
    assert list(frame.columns) == ["id", "label", "value", "threshold_percent"]
    assert frame.loc[0, "label"] == "A"


# --------------------------
# Loading from a table
# --------------------------
def test_from_frame_counts_rows_without_weight_column():
    df = pd.DataFrame({"Defect": ["Scratch", "Dent", "Scratch", "Crack", "Scratch", "Dent"]})
    ds = dataset_from_frame(df, "Defect")
    assert [(r.label, r.value) for r in ds] == [("Scratch", 3.0), ("Dent", 2.0), ("Crack", 1.0)]


def test_from_frame_sums_weights_and_averages_thresholds():
    df = pd.DataFrame({
        "Unit": ["U1", "U2", "U1"],
        "Cost": [10, "5", 30],
        "Target": [70, 80, 90],
    })
    ds = dataset_from_frame(df, "Unit", weight_col="Cost", threshold_col="Target")
    assert [(r.label, r.value, r.threshold_percent) for r in ds] == [
        ("U1", 40.0, 80.0),
        ("U2", 5.0, 80.0),
    ]


def test_from_frame_empty_gives_default_dataset():
    ds = dataset_from_frame(pd.DataFrame(), "Unit")
    assert len(ds) == 1
    assert ds.records[0].label == ""


def test_from_frame_missing_column():
    with pytest.raises(KeyError):
        dataset_from_frame(pd.DataFrame({"a": [1]}), "b")
