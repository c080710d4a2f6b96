"""Mini README: Shared fixtures for the treesurvey test-suite.

Structure:
    * jpeg_bytes, png_bytes, webp_bytes - small real images produced by Pillow.
    * make_entry - factory for ``SurveyEntry`` records without embedding.
"""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from treesurvey.entries import GeoFix, HealthStatus, SurveyEntry

WITA = timezone(timedelta(hours=8))
_UNSET = object()


def render_jpeg(color=(34, 139, 34), size=(16, 12), **save_options) -> bytes:
    image = Image.new("RGB", size, color)
    for x in range(size[0]):
        image.putpixel((x, x % size[1]), (200, 30, 30))
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=90, **save_options)
    return buffer.getvalue()


def render_image(image_format: str, color=(34, 139, 34), size=(16, 12)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return render_jpeg()


@pytest.fixture
def png_bytes() -> bytes:
    return render_image("PNG")


@pytest.fixture
def webp_bytes() -> bytes:
    return render_image("WEBP")


@pytest.fixture
def make_entry(jpeg_bytes):
    def _make(
        entry_id: str = "20240601-120000",
        *,
        gps=None,
        photo=_UNSET,
        health: HealthStatus = HealthStatus.HEALTHY,
        species: str = "Acacia",
        height_cm: int = 120,
        **overrides,
    ) -> SurveyEntry:
        captured_at = datetime.strptime(entry_id, "%Y%m%d-%H%M%S").replace(tzinfo=WITA)
        values = dict(
            entry_id=entry_id,
            captured_at=captured_at,
            height_cm=height_cm,
            planting_year=2022,
            species=species,
            health_status=health,
            location="Blok A",
            job_name="Revegetasi 2024",
            supervisor="Budi",
            vendor="PT Hijau",
            team="Tim 1",
            gps=gps,
            photo=jpeg_bytes if photo is _UNSET else photo,
        )
        values.update(overrides)
        return SurveyEntry(**values)

    return _make


@pytest.fixture
def fix() -> GeoFix:
    return GeoFix(latitude=-2.548926, longitude=118.014863, accuracy_m=4.5)


@pytest.fixture
def jpeg_with_camera_exif() -> bytes:
    """JPEG that already carries a camera EXIF block (Make tag)."""

    exif = Image.Exif()
    exif[0x010F] = "CameraCo"
    return render_jpeg(exif=exif.tobytes())
