"""Mini README: Single entry point for the three export formats.

Structure:
    * ExportFormat - closed enum of supported formats.
    * export_entries - dispatch a snapshot to the matching exporter.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from ..entries.model import SurveyEntry
from .artifacts import DEFAULT_BASENAME, ExportArtifact
from .geo_container_exporter import export_geo_container
from .image_archive_exporter import export_image_archive
from .tabular_exporter import export_tabular


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    KMZ = "kmz"
    ZIP = "zip"

    @classmethod
    def from_str(cls, value: str) -> "ExportFormat":
        """Coerce arbitrary casing into a valid export format."""

        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported export format: {value}") from error


def export_entries(
    export_format: ExportFormat,
    entries: Iterable[SurveyEntry],
    *,
    generated_at: Optional[datetime] = None,
    basename: str = DEFAULT_BASENAME,
    include_photos: bool = False,
) -> ExportArtifact:
    """Export a snapshot of ``entries`` in ``export_format``."""

    snapshot = tuple(entries)
    if export_format is ExportFormat.CSV:
        return export_tabular(snapshot, generated_at=generated_at, basename=basename)
    if export_format is ExportFormat.KMZ:
        return export_geo_container(
            snapshot,
            generated_at=generated_at,
            basename=basename,
            include_photos=include_photos,
        )
    if export_format is ExportFormat.ZIP:
        return export_image_archive(snapshot, generated_at=generated_at, basename=basename)
    raise ValueError(f"Unsupported export format: {export_format!r}")
