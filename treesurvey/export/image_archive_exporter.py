"""Mini README: Bundle every entry photo into one zip download.

Structure:
    * to_image_archive - zip bytes plus the members that had to be skipped.
    * export_image_archive - wraps the result into an ``ExportArtifact``.

Members are named ``photo_<id>.<ext>`` and written in collection order, GPS
or not. A missing or unreadable photo is skipped and reported as an
``ExportPartial`` warning. When every photo is skipped the result is a valid,
empty archive carrying one warning per entry; only an empty collection is
refused.
"""

from __future__ import annotations

import io
import zipfile
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..entries.model import SurveyEntry
from ..errors import ExportFailed, ExportPartial
from ..logging_utils import get_logger
from .artifacts import (
    DEFAULT_BASENAME,
    ZIP_CONTENT_TYPE,
    ExportArtifact,
    export_stamp,
    photo_member_names,
    suggested_filename,
    zip_entry_info,
)

LOGGER = get_logger(__name__)


def to_image_archive(entries: Iterable[SurveyEntry]) -> Tuple[bytes, Tuple[ExportPartial, ...]]:
    """Zip all readable entry photos; return the bytes and the omissions."""

    snapshot = tuple(entries)
    if not snapshot:
        raise ExportFailed("No entries to archive")

    names = photo_member_names(snapshot)
    omissions: List[ExportPartial] = []
    for position, entry in enumerate(snapshot):
        if position in names:
            continue
        reason = "photo payload is missing" if not entry.photo else "photo payload is not a readable image"
        LOGGER.warning("Omitting entry %s from photo archive: %s", entry.entry_id, reason)
        omissions.append(ExportPartial(entry_id=entry.entry_id, reason=reason))

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for position, name in names.items():
            entry = snapshot[position]
            archive.writestr(zip_entry_info(name, entry.captured_at), entry.photo)
    return buffer.getvalue(), tuple(omissions)


def export_image_archive(
    entries: Iterable[SurveyEntry],
    *,
    generated_at: Optional[datetime] = None,
    basename: str = DEFAULT_BASENAME,
) -> ExportArtifact:
    """Produce the photo archive artefact with its suggested file name."""

    snapshot = tuple(entries)
    stamp = export_stamp(generated_at)
    payload, omissions = to_image_archive(snapshot)
    LOGGER.info(
        "Exported %s photos to archive (%s omitted, %s bytes)",
        len(snapshot) - len(omissions),
        len(omissions),
        len(payload),
    )
    if omissions and len(omissions) == len(snapshot):
        LOGGER.warning("Photo archive is empty: none of the %s entries has a readable photo", len(snapshot))
    return ExportArtifact(
        filename=suggested_filename(f"{basename}_photos", "zip", stamp),
        content_type=ZIP_CONTENT_TYPE,
        payload=payload,
        warnings=omissions,
    )
