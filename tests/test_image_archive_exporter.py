"""Mini README: Tests for the photo archive exporter.

Covers member naming and ordering, partial results for missing photos,
duplicate ids and the empty-archive failure.
"""

from __future__ import annotations

import io
import zipfile
from datetime import datetime, timezone

import pytest

from treesurvey.entries import GeoFix, SurveyForm, create_entry
from treesurvey.errors import ExportFailed, ExportPartial
from treesurvey.export import export_image_archive, to_image_archive


def _names(payload: bytes):
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        return archive.namelist()


def test_missing_photo_yields_partial_archive(make_entry) -> None:
    """One missing payload of three: two members and a warning, no exception."""

    entries = [
        make_entry("20240601-100000", gps=GeoFix(1.0, 1.0)),
        make_entry("20240601-100100", photo=None),
        make_entry("20240601-100200", gps=None),
    ]

    payload, omissions = to_image_archive(entries)

    assert _names(payload) == ["photo_20240601-100000.jpg", "photo_20240601-100200.jpg"]
    assert omissions == (ExportPartial(entry_id="20240601-100100", reason="photo payload is missing"),)


def test_unreadable_photo_is_omitted(make_entry) -> None:
    entries = [make_entry("20240601-100000"), make_entry("20240601-100100", photo=b"garbage")]

    payload, omissions = to_image_archive(entries)

    assert _names(payload) == ["photo_20240601-100000.jpg"]
    assert omissions[0].reason == "photo payload is not a readable image"


def test_photos_the_embedder_kept_as_captured_are_archived(make_entry, png_bytes, webp_bytes) -> None:
    """Non-JPEG photos stay unannotated but are still readable images."""

    entries = [
        make_entry("20240601-100000", photo=webp_bytes),
        make_entry("20240601-100100", photo=png_bytes),
    ]

    payload, omissions = to_image_archive(entries)

    assert omissions == ()
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        assert archive.namelist() == ["photo_20240601-100000.webp", "photo_20240601-100100.png"]
        assert archive.read("photo_20240601-100000.webp") == webp_bytes


def test_single_non_jpeg_capture_exports(webp_bytes) -> None:
    entry = create_entry(SurveyForm(), None, webp_bytes)

    artifact = export_image_archive([entry])

    assert entry.photo == webp_bytes
    assert not artifact.partial
    assert _names(artifact.payload) == [f"photo_{entry.entry_id}.webp"]


def test_members_keep_photo_bytes_and_order(make_entry, jpeg_bytes) -> None:
    entries = [make_entry("20240602-090000"), make_entry("20240601-090000")]

    payload, _ = to_image_archive(entries)

    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        assert archive.namelist() == ["photo_20240602-090000.jpg", "photo_20240601-090000.jpg"]
        assert archive.read("photo_20240601-090000.jpg") == jpeg_bytes
        assert archive.getinfo("photo_20240601-090000.jpg").date_time == (2024, 6, 1, 9, 0, 0)


def test_same_second_captures_get_distinct_names(make_entry) -> None:
    entries = [make_entry("20240601-100000"), make_entry("20240601-100000")]

    payload, _ = to_image_archive(entries)

    assert _names(payload) == ["photo_20240601-100000.jpg", "photo_20240601-100000_2.jpg"]


def test_archive_is_deterministic(make_entry) -> None:
    entries = [make_entry("20240601-100000"), make_entry("20240601-100100")]

    assert to_image_archive(entries)[0] == to_image_archive(entries)[0]


def test_empty_collection_fails() -> None:
    with pytest.raises(ExportFailed):
        to_image_archive([])


def test_archive_without_any_photo_is_empty_but_keeps_warnings(make_entry) -> None:
    entries = [make_entry(photo=None), make_entry("20240601-120001", photo=b"garbage")]

    payload, omissions = to_image_archive(entries)

    assert _names(payload) == []
    assert omissions == (
        ExportPartial(entry_id="20240601-120000", reason="photo payload is missing"),
        ExportPartial(entry_id="20240601-120001", reason="photo payload is not a readable image"),
    )


def test_artifact_reports_partial_result(make_entry) -> None:
    artifact = export_image_archive(
        [make_entry(), make_entry("20240601-120001", photo=None)],
        generated_at=datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc),
    )

    assert artifact.filename == "tree_survey_photos_20240601-120000.zip"
    assert artifact.content_type == "application/zip"
    assert artifact.partial
    assert [warning.entry_id for warning in artifact.warnings] == ["20240601-120001"]
