"""Mini README: Read survey metadata back out of annotated photos.

Structure:
    * read_geotag - GPS IFD to ``GeoFix`` (``None`` when absent).
    * read_description - raw ImageDescription text.
    * read_survey_fields - description split into its named fields.

Reading goes through Pillow's EXIF support so the check is independent of
the writer in ``exif_writer``.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPS, IFD, Base

from ..entries.model import GeoFix
from ..errors import UnsupportedContainer
from .exif_writer import parse_description


def _read_tags(photo: bytes) -> Tuple[Dict[int, Any], Dict[int, Any]]:
    """Return (IFD0, GPS IFD) tag dictionaries."""

    try:
        with Image.open(io.BytesIO(photo)) as image:
            exif = image.getexif()
            return dict(exif), dict(exif.get_ifd(IFD.GPSInfo))
    except (UnidentifiedImageError, OSError) as error:
        raise UnsupportedContainer("Photo payload is not a readable image") from error


def _to_degrees(values: Any, reference: Any) -> float:
    degrees, minutes, seconds = (float(value) for value in values)
    result = degrees + minutes / 60 + seconds / 3600
    if str(reference).strip("\x00 ").upper() in {"S", "W"}:
        return -result
    return result


def read_geotag(photo: bytes) -> Optional[GeoFix]:
    """Return the embedded position, or ``None`` if the photo has no geotag."""

    _, gps = _read_tags(photo)
    if GPS.GPSLatitude not in gps or GPS.GPSLongitude not in gps:
        return None
    latitude = _to_degrees(gps[GPS.GPSLatitude], gps.get(GPS.GPSLatitudeRef, "N"))
    longitude = _to_degrees(gps[GPS.GPSLongitude], gps.get(GPS.GPSLongitudeRef, "E"))
    accuracy = gps.get(GPS.GPSHPositioningError)
    return GeoFix(
        latitude=latitude,
        longitude=longitude,
        accuracy_m=float(accuracy) if accuracy is not None else 0.0,
    )


def read_description(photo: bytes) -> Optional[str]:
    """Return the ImageDescription text, decoded as UTF-8 where possible."""

    ifd0, _ = _read_tags(photo)
    text = ifd0.get(Base.ImageDescription)
    if text is None:
        return None
    if isinstance(text, bytes):
        raw = text
    else:
        # Pillow decodes TIFF ASCII as latin-1; the writer stores UTF-8.
        try:
            raw = text.encode("latin-1")
        except UnicodeEncodeError:
            return text
    try:
        return raw.decode("utf-8").rstrip("\x00")
    except UnicodeDecodeError:
        return raw.decode("latin-1").rstrip("\x00")


def read_survey_fields(photo: bytes) -> Dict[str, str]:
    """Return the named description fields (empty when nothing is embedded)."""

    text = read_description(photo)
    return parse_description(text) if text else {}
