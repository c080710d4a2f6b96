"""Mini README: Tests for the entry collection and dashboard analytics.

These tests confirm that captures keep their append order, snapshots are
isolated from later captures, lookups and resets behave, and the metrics
handle both populated and empty collections.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from treesurvey.entries import EntryCollection, GeoFix, HealthStatus, SurveyForm
from treesurvey.metadata import read_survey_fields

WITA = timezone(timedelta(hours=8))


def test_capture_appends_in_order_with_embedded_photo(jpeg_bytes) -> None:
    """Captured entries keep append order and carry their metadata."""

    collection = EntryCollection()
    first = collection.capture(
        SurveyForm(height_cm=85, species="Gmelina"),
        GeoFix(-2.5, 118.0, 3.0),
        jpeg_bytes,
        captured_at=datetime(2024, 6, 1, 9, 0, 0, tzinfo=WITA),
    )
    second = collection.capture(
        SurveyForm(),
        None,
        jpeg_bytes,
        captured_at=datetime(2024, 6, 1, 8, 0, 0, tzinfo=WITA),
    )

    assert [entry.entry_id for entry in collection.snapshot()] == [first.entry_id, second.entry_id]
    assert first.entry_id == "20240601-090000"
    assert first.metadata_embedded
    assert read_survey_fields(first.photo)["Species"] == "Gmelina"


def test_capture_falls_back_to_gps_label_for_location(jpeg_bytes) -> None:
    collection = EntryCollection()

    entry = collection.capture(SurveyForm(location=""), GeoFix(-2.5, 118.25), jpeg_bytes)

    assert entry.location == "-2.500000,118.250000"


def test_capture_survives_unreadable_photo() -> None:
    """Embedding failures are recorded, never raised."""

    collection = EntryCollection()

    entry = collection.capture(SurveyForm(), None, b"not a jpeg")

    assert len(collection) == 1
    assert entry.photo == b"not a jpeg"
    assert not entry.metadata_embedded
    assert entry.embedding_failure is not None


def test_snapshot_is_isolated_from_later_appends(make_entry) -> None:
    collection = EntryCollection([make_entry("20240601-100000")])

    snapshot = collection.snapshot()
    collection.append(make_entry("20240601-100100"))

    assert len(snapshot) == 1
    assert len(collection) == 2


def test_get_returns_entry_or_raises(make_entry) -> None:
    entry = make_entry("20240601-100000")
    collection = EntryCollection([entry])

    assert collection.get("20240601-100000") is entry
    with pytest.raises(KeyError):
        collection.get("20990101-000000")


def test_reset_removes_everything(make_entry) -> None:
    collection = EntryCollection([make_entry(), make_entry("20240601-120001")])

    assert collection.reset() == 2
    assert collection.snapshot() == ()


def test_metrics_summarise_health_heights_and_area(make_entry) -> None:
    collection = EntryCollection(
        [
            make_entry("20240601-100000", gps=GeoFix(0.0, 0.0), height_cm=100),
            make_entry("20240601-100100", gps=GeoFix(0.001, 0.001), height_cm=200),
            make_entry(
                "20240601-100200",
                health=HealthStatus.DEAD,
                height_cm=50,
                planting_year=2021,
            ),
        ]
    )

    metrics = collection.summarise_metrics()

    assert metrics["total_entries"] == 3
    assert metrics["geotagged_entries"] == 2
    assert metrics["health_counts"] == {"Healthy": 2, "Struggling": 0, "Dead": 1}
    assert metrics["mean_height_by_health"] == {"Healthy": 150.0, "Struggling": None, "Dead": 50.0}
    assert metrics["mean_height_by_planting_year"] == [
        {"planting_year": 2021, "mean_height_cm": 50.0, "count": 1},
        {"planting_year": 2022, "mean_height_cm": 150.0, "count": 2},
    ]
    # 0.001 degree is roughly 111 m on each side at the equator.
    assert metrics["area_hectares"] == pytest.approx(1.236, rel=0.01)
    assert metrics["density_per_hectare"] == pytest.approx(2 / metrics["area_hectares"])
    assert metrics["average_distance_m"] == pytest.approx(157.25, rel=0.01)


def test_metrics_for_empty_collection_are_not_applicable() -> None:
    metrics = EntryCollection().summarise_metrics()

    assert metrics["total_entries"] == 0
    assert metrics["area_hectares"] is None
    assert metrics["density_per_hectare"] is None
    assert metrics["average_distance_m"] is None
    assert metrics["mean_height_by_planting_year"] == []
