"""Mini README: Tests for survey records and entry creation.

Structure:
    * id derivation and single embedding at creation time.
    * form coercion, health labels and GeoFix range checks.
    * flat upload field map.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from treesurvey.entries import GeoFix, HealthStatus, SurveyForm, create_entry, entry_id_for
from treesurvey.errors import EmbeddingFailed, UnsupportedContainer
from treesurvey.metadata import read_geotag, read_survey_fields

WITA = timezone(timedelta(hours=8))


def test_entry_id_uses_second_resolution_timestamp() -> None:
    moment = datetime(2024, 5, 1, 10, 15, 30, 999_000, tzinfo=WITA)
    assert entry_id_for(moment) == "20240501-101530"


def test_create_entry_embeds_metadata_once(jpeg_bytes, fix) -> None:
    """The stored photo is the embedder's output, not the raw capture."""

    captured_at = datetime(2024, 5, 1, 10, 15, 30, tzinfo=WITA)
    form = SurveyForm(height_cm=85, planting_year=2023, species="Sengon", supervisor="Sari")

    entry = create_entry(form, fix, jpeg_bytes, captured_at=captured_at)

    assert entry.entry_id == "20240501-101530"
    assert entry.captured_at == captured_at
    assert entry.photo != jpeg_bytes
    assert entry.metadata_embedded
    assert entry.embedding_failure is None
    geotag = read_geotag(entry.photo)
    assert geotag.latitude == pytest.approx(fix.latitude, abs=1e-6)
    assert geotag.longitude == pytest.approx(fix.longitude, abs=1e-6)
    assert read_survey_fields(entry.photo)["Species"] == "Sengon"


def test_create_entry_keeps_raw_photo_when_embedding_fails() -> None:
    """A broken photo never blocks the record; the failure is typed."""

    raw = b"definitely not a jpeg"
    entry = create_entry(SurveyForm(), None, raw)

    assert entry.photo == raw
    assert isinstance(entry.embedding_failure, UnsupportedContainer)
    assert isinstance(entry.embedding_failure, EmbeddingFailed)
    assert not entry.metadata_embedded


def test_blank_location_falls_back_to_gps_label(jpeg_bytes, fix) -> None:
    entry = create_entry(SurveyForm(location=""), fix, jpeg_bytes)
    assert entry.location == "-2.548926,118.014863"

    labelled = create_entry(SurveyForm(location="Blok C"), fix, jpeg_bytes)
    assert labelled.location == "Blok C"


def test_entries_are_immutable(make_entry) -> None:
    entry = make_entry()
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.height_cm = 5  # type: ignore[misc]


def test_health_status_accepts_casing_and_field_labels() -> None:
    assert HealthStatus.from_str("healthy") is HealthStatus.HEALTHY
    assert HealthStatus.from_str(" DEAD ") is HealthStatus.DEAD
    assert HealthStatus.from_str("Merana") is HealthStatus.STRUGGLING
    assert HealthStatus.from_str("sehat") is HealthStatus.HEALTHY
    with pytest.raises(ValueError):
        HealthStatus.from_str("wilting")


def test_form_from_mapping_coerces_loose_values() -> None:
    """String numbers are parsed, blanks fall back, aliases are honoured."""

    defaults = SurveyForm(planting_year=2021, species="Acacia")
    form = SurveyForm.from_mapping(
        {"tinggi": "120", "tahun": "", "jenis": " Meranti ", "kesehatan": "Mati", "unknown": "x"},
        defaults=defaults,
    )

    assert form.height_cm == 120
    assert form.planting_year == 2021
    assert form.species == "Meranti"
    assert form.health_status is HealthStatus.DEAD


def test_form_from_mapping_rejects_non_numeric_height() -> None:
    with pytest.raises(ValueError):
        SurveyForm.from_mapping({"height_cm": "tall"})


@pytest.mark.parametrize(
    "latitude, longitude, accuracy",
    [(91.0, 0.0, 0.0), (-90.5, 0.0, 0.0), (0.0, 180.5, 0.0), (0.0, 0.0, -1.0)],
)
def test_geofix_rejects_out_of_range_values(latitude, longitude, accuracy) -> None:
    with pytest.raises(ValueError):
        GeoFix(latitude, longitude, accuracy)


def test_geofix_from_optional_needs_both_coordinates() -> None:
    assert GeoFix.from_optional(None, 10.0) is None
    assert GeoFix.from_optional(1.0, 2.0) == GeoFix(1.0, 2.0, 0.0)


def test_upload_fields_split_gps(make_entry, fix) -> None:
    fields = make_entry(gps=fix).as_upload_fields()

    assert fields["id"] == "20240601-120000"
    assert fields["latitude"] == fix.latitude
    assert fields["longitude"] == fix.longitude
    assert fields["coordinates"] == f"{fix.latitude},{fix.longitude}"
    assert fields["health"] == "Healthy"
    assert fields["photo"].startswith("data:image/jpeg;base64,")
    assert fields["photo_filename"] == "survey_photos/photo_20240601-120000.jpg"


def test_upload_fields_mark_missing_gps(make_entry) -> None:
    fields = make_entry(gps=None, photo=None).as_upload_fields()

    assert fields["coordinates"] == "N/A"
    assert fields["latitude"] == "N/A"
    assert fields["longitude"] == "N/A"
    assert fields["photo"] == ""


def test_capture_without_photo_keeps_none() -> None:
    entry = create_entry(SurveyForm(), None, None)

    assert entry.photo is None
    assert isinstance(entry.embedding_failure, UnsupportedContainer)
    assert not entry.metadata_embedded


def test_upload_fields_follow_photo_format(make_entry, png_bytes, webp_bytes) -> None:
    png_fields = make_entry(photo=png_bytes).as_upload_fields()
    webp_fields = make_entry(photo=webp_bytes).as_upload_fields()

    assert png_fields["photo"].startswith("data:image/png;base64,")
    assert png_fields["photo_filename"] == "survey_photos/photo_20240601-120000.png"
    assert webp_fields["photo"].startswith("data:image/webp;base64,")
    assert webp_fields["photo_filename"] == "survey_photos/photo_20240601-120000.webp"
