"""Mini README: Canonical survey record and its value types.

Structure:
    * HealthStatus - closed enum of tree health states.
    * GeoFix - immutable latitude/longitude/accuracy triple.
    * SurveyForm - operator-entered fields, coerced once from a loose field bag.
    * SurveyEntry - the immutable unit of record, one per photographed tree.

Entries never change after construction; the owning ``EntryCollection`` only
appends or resets. Creation (id assignment plus metadata embedding) lives in
``capture.py``.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..errors import EmbeddingFailed
from ..utils.image_format import detect_photo_format

ENTRY_ID_FORMAT = "%Y%m%d-%H%M%S"
MISSING_COORDINATES = "N/A"
DEFAULT_SPECIES = "Acacia"
DEFAULT_HEIGHT_CM = 10


class HealthStatus(str, Enum):
    """Health of a surveyed tree."""

    HEALTHY = "Healthy"
    STRUGGLING = "Struggling"
    DEAD = "Dead"

    @classmethod
    def from_str(cls, value: str) -> "HealthStatus":
        """Coerce arbitrary casing, and the crews' Indonesian labels, into a state."""

        try:
            normalised = value.strip().lower()
        except AttributeError as error:
            raise ValueError(f"Unsupported health status: {value!r}") from error
        for status in cls:
            if status.value.lower() == normalised:
                return status
        if normalised in _HEALTH_ALIASES:
            return _HEALTH_ALIASES[normalised]
        raise ValueError(f"Unsupported health status: {value!r}")


_HEALTH_ALIASES = {
    "sehat": HealthStatus.HEALTHY,
    "merana": HealthStatus.STRUGGLING,
    "mati": HealthStatus.DEAD,
}


@dataclass(frozen=True, slots=True)
class GeoFix:
    """Position reported by the device at capture time."""

    latitude: float
    longitude: float
    accuracy_m: float = 0.0

    def __post_init__(self) -> None:
        for name in ("latitude", "longitude", "accuracy_m"):
            object.__setattr__(self, name, float(getattr(self, name)))
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} outside [-180, 180]")
        if not self.accuracy_m >= 0.0:
            raise ValueError(f"Accuracy {self.accuracy_m} must be non-negative")

    @classmethod
    def from_optional(
        cls,
        latitude: Optional[float],
        longitude: Optional[float],
        accuracy_m: Optional[float] = None,
    ) -> Optional["GeoFix"]:
        """Build a fix, or ``None`` when the device had no signal."""

        if latitude is None or longitude is None:
            return None
        return cls(latitude=latitude, longitude=longitude, accuracy_m=accuracy_m or 0.0)

    def as_label(self) -> str:
        """Render as the ``lat,lon`` location label used on the capture form."""

        return f"{self.latitude:.6f},{self.longitude:.6f}"


@dataclass(frozen=True, slots=True)
class SurveyForm:
    """Operator-entered survey fields."""

    height_cm: int = DEFAULT_HEIGHT_CM
    planting_year: int = field(default_factory=lambda: date.today().year)
    species: str = DEFAULT_SPECIES
    health_status: HealthStatus = HealthStatus.HEALTHY
    location: str = ""
    job_name: str = ""
    supervisor: str = ""
    vendor: str = ""
    team: str = ""

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], defaults: Optional["SurveyForm"] = None
    ) -> "SurveyForm":
        """Coerce a loosely-typed field bag into a form.

        Blank numeric fields fall back to ``defaults``; anything else is kept
        as entered after type coercion. Keys from the field app's original
        Indonesian form (``tinggi``, ``jenis`` ...) are accepted as aliases.
        """

        base = defaults or cls()
        known = {item.name for item in fields(cls)}
        coerced: Dict[str, Any] = {}
        for raw_key, value in values.items():
            key = _FORM_ALIASES.get(raw_key, raw_key)
            if key not in known or value is None:
                continue
            if key in {"height_cm", "planting_year"}:
                coerced[key] = _coerce_int(value, getattr(base, key), key)
            elif key == "health_status":
                coerced[key] = (
                    value if isinstance(value, HealthStatus) else HealthStatus.from_str(str(value))
                )
            else:
                coerced[key] = str(value).strip()
        merged = {item.name: getattr(base, item.name) for item in fields(cls)}
        merged.update(coerced)
        return cls(**merged)


_FORM_ALIASES = {
    "tinggi": "height_cm",
    "tahun": "planting_year",
    "jenis": "species",
    "kesehatan": "health_status",
    "lokasi": "location",
    "pekerjaan": "job_name",
    "pengawas": "supervisor",
    "tim": "team",
}


def _coerce_int(value: Any, fallback: int, name: str) -> int:
    """Parse form numbers; blank input keeps the fallback."""

    if isinstance(value, bool):
        raise ValueError(f"Field '{name}' must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return fallback
    try:
        return int(round(float(text)))
    except (TypeError, ValueError, OverflowError) as error:
        raise ValueError(f"Field '{name}' must be numeric, got {value!r}") from error


@dataclass(frozen=True, slots=True)
class SurveyEntry:
    """One photographed tree with its survey metadata."""

    entry_id: str
    captured_at: datetime
    height_cm: int
    planting_year: int
    species: str
    health_status: HealthStatus
    location: str
    job_name: str
    supervisor: str
    vendor: str
    team: str
    gps: Optional[GeoFix] = None
    photo: Optional[bytes] = field(default=None, repr=False)
    embedding_failure: Optional[EmbeddingFailed] = field(
        default=None, repr=False, compare=False
    )

    @property
    def metadata_embedded(self) -> bool:
        """Whether the stored photo carries the survey metadata block."""

        return self.embedding_failure is None and bool(self.photo)

    @property
    def coordinates_label(self) -> str:
        """``lat,lon`` at full precision, or the missing marker."""

        if self.gps is None:
            return MISSING_COORDINATES
        return f"{self.gps.latitude},{self.gps.longitude}"

    def summary(self) -> Dict[str, Any]:
        """Export the entry without its photo payload for JSON responses."""

        return {
            "entry_id": self.entry_id,
            "captured_at": self.captured_at.isoformat(),
            "height_cm": self.height_cm,
            "planting_year": self.planting_year,
            "species": self.species,
            "health_status": self.health_status.value,
            "location": self.location,
            "job_name": self.job_name,
            "supervisor": self.supervisor,
            "vendor": self.vendor,
            "team": self.team,
            "gps": (
                {
                    "latitude": self.gps.latitude,
                    "longitude": self.gps.longitude,
                    "accuracy_m": self.gps.accuracy_m,
                }
                if self.gps
                else None
            ),
            "photo_bytes": len(self.photo) if self.photo else 0,
            "metadata_embedded": self.metadata_embedded,
        }

    def as_upload_fields(self) -> Dict[str, Any]:
        """Flatten the entry for a caller-supplied upload transport."""

        # Unrecognised payloads keep the camera default of JPEG.
        photo_format = detect_photo_format(self.photo)
        media_type = photo_format.media_type if photo_format else "image/jpeg"
        extension = photo_format.extension if photo_format else "jpg"
        photo = ""
        if self.photo:
            encoded = base64.b64encode(self.photo).decode("ascii")
            photo = f"data:{media_type};base64,{encoded}"
        return {
            "id": self.entry_id,
            "timestamp": self.captured_at.isoformat(),
            "location": self.location,
            "job": self.job_name,
            "height_cm": self.height_cm,
            "coordinates": self.coordinates_label,
            "longitude": self.gps.longitude if self.gps else MISSING_COORDINATES,
            "latitude": self.gps.latitude if self.gps else MISSING_COORDINATES,
            "accuracy_m": self.gps.accuracy_m if self.gps else MISSING_COORDINATES,
            "species": self.species,
            "planting_year": self.planting_year,
            "supervisor": self.supervisor,
            "vendor": self.vendor,
            "team": self.team,
            "health": self.health_status.value,
            "photo": photo,
            "photo_filename": f"survey_photos/photo_{self.entry_id}.{extension}",
        }
