"""Mini README: Shared plumbing for export artefacts.

Structure:
    * ExportArtifact - bytes plus suggested file name, MIME type and warnings.
    * export_stamp / suggested_filename - deterministic naming from the export instant.
    * zip_entry_info - zip member header with a fixed timestamp.
    * photo_member_names - archive naming for entry photos, extension from
      the detected container format.
"""

from __future__ import annotations

import zipfile
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from ..entries.model import SurveyEntry
from ..errors import ExportPartial
from ..utils.image_format import detect_photo_format

DEFAULT_BASENAME = "tree_survey"
STAMP_FORMAT = "%Y%m%d-%H%M%S"
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

CSV_CONTENT_TYPE = "text/csv"
KMZ_CONTENT_TYPE = "application/vnd.google-earth.kmz"
ZIP_CONTENT_TYPE = "application/zip"


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    """A finished export ready to hand to the user."""

    filename: str
    content_type: str
    payload: bytes = field(repr=False)
    warnings: Tuple[ExportPartial, ...] = ()

    @property
    def partial(self) -> bool:
        return bool(self.warnings)

    @property
    def size(self) -> int:
        return len(self.payload)


def export_stamp(generated_at: Optional[datetime] = None) -> datetime:
    """Return the export instant, defaulting to now in local time."""

    return generated_at or datetime.now().astimezone()


def suggested_filename(basename: str, suffix: str, generated_at: datetime) -> str:
    """``<basename>_<YYYYMMDD-HHMMSS>.<suffix>``."""

    return f"{basename}_{generated_at.strftime(STAMP_FORMAT)}.{suffix}"


def zip_entry_info(name: str, moment: datetime) -> zipfile.ZipInfo:
    """Build a deflated zip member header stamped with ``moment``."""

    date_time = moment.timetuple()[:6]
    if date_time < ZIP_EPOCH:
        date_time = ZIP_EPOCH
    info = zipfile.ZipInfo(filename=name, date_time=date_time)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def photo_member_names(entries: Iterable[SurveyEntry], prefix: str = "") -> Dict[int, str]:
    """Map each entry position to a unique member name derived from its id.

    Entries captured within the same second share an id; later ones get a
    ``_2``, ``_3`` suffix in collection order so names stay stable across runs.
    Entries without a readable photo get no name.
    """

    seen: Counter = Counter()
    names: Dict[int, str] = {}
    for position, entry in enumerate(entries):
        photo_format = detect_photo_format(entry.photo)
        if photo_format is None:
            continue
        seen[entry.entry_id] += 1
        suffix = "" if seen[entry.entry_id] == 1 else f"_{seen[entry.entry_id]}"
        names[position] = f"{prefix}photo_{entry.entry_id}{suffix}.{photo_format.extension}"
    return names
