"""Mini README: Export survey entries as CSV.

Structure:
    * TABULAR_COLUMNS - fixed header order.
    * to_tabular - rows in collection order, standard CSV quoting.
    * export_tabular - wraps the bytes into an ``ExportArtifact``.

Free-text fields are operator-entered, so commas, quotes and newlines are
expected; ``csv`` quotes those cells and doubles embedded quotes. Output only
depends on the entries, so repeated calls are byte-identical.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable, List, Optional

from ..entries.model import SurveyEntry
from ..logging_utils import get_logger
from .artifacts import (
    CSV_CONTENT_TYPE,
    DEFAULT_BASENAME,
    ExportArtifact,
    export_stamp,
    suggested_filename,
)

LOGGER = get_logger(__name__)

TABULAR_COLUMNS = (
    "id",
    "timestamp",
    "height_cm",
    "species",
    "health",
    "location",
    "planting_year",
    "job",
    "supervisor",
    "vendor",
    "team",
    "coordinates",
)


def _row(entry: SurveyEntry) -> List[str]:
    return [
        entry.entry_id,
        entry.captured_at.isoformat(),
        str(entry.height_cm),
        entry.species,
        entry.health_status.value,
        entry.location,
        str(entry.planting_year),
        entry.job_name,
        entry.supervisor,
        entry.vendor,
        entry.team,
        entry.coordinates_label,
    ]


def to_tabular(entries: Iterable[SurveyEntry]) -> bytes:
    """Serialise entries to UTF-8 CSV with a header row."""

    snapshot = tuple(entries)
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(TABULAR_COLUMNS)
    for entry in snapshot:
        writer.writerow(_row(entry))
    LOGGER.debug("Serialised %s entries to CSV", len(snapshot))
    return buffer.getvalue().encode("utf-8")


def export_tabular(
    entries: Iterable[SurveyEntry],
    *,
    generated_at: Optional[datetime] = None,
    basename: str = DEFAULT_BASENAME,
) -> ExportArtifact:
    """Produce the CSV artefact with its suggested file name."""

    snapshot = tuple(entries)
    stamp = export_stamp(generated_at)
    payload = to_tabular(snapshot)
    LOGGER.info("Exported %s entries to CSV (%s bytes)", len(snapshot), len(payload))
    return ExportArtifact(
        filename=suggested_filename(basename, "csv", stamp),
        content_type=CSV_CONTENT_TYPE,
        payload=payload,
    )
