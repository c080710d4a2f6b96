"""Mini README: Export utilities for survey entries.

Exposes the CSV, KMZ and photo-archive exporters. Each takes a snapshot of
entries and returns bytes (or an ``ExportArtifact`` with a suggested file
name and MIME type); none of them writes to disk.
"""

from .artifacts import ExportArtifact
from .formats import ExportFormat, export_entries
from .geo_container_exporter import export_geo_container, style_for, to_geo_container
from .image_archive_exporter import export_image_archive, to_image_archive
from .tabular_exporter import TABULAR_COLUMNS, export_tabular, to_tabular

__all__ = [
    "ExportArtifact",
    "ExportFormat",
    "TABULAR_COLUMNS",
    "export_entries",
    "export_geo_container",
    "export_image_archive",
    "export_tabular",
    "style_for",
    "to_geo_container",
    "to_image_archive",
    "to_tabular",
]
