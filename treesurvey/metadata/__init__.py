"""Mini README: Photo metadata embedding for survey captures.

``exif_writer`` injects the survey's EXIF block into a JPEG without touching
the compressed pixels; ``exif_reader`` reads the geotag and description back.
"""

from .exif_writer import (
    EmbeddingResult,
    build_exif_payload,
    embed_metadata,
    format_description,
    parse_description,
)
from .exif_reader import read_description, read_geotag, read_survey_fields

__all__ = [
    "EmbeddingResult",
    "build_exif_payload",
    "embed_metadata",
    "format_description",
    "parse_description",
    "read_description",
    "read_geotag",
    "read_survey_fields",
]
