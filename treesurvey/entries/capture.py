"""Mini README: Turn a capture (form, fix, raw photo) into a survey entry.

Structure:
    * entry_id_for - second-resolution id derived from the capture instant.
    * create_entry - builds the entry and runs the metadata embedder once.

Ids follow ``YYYYMMDD-HHMMSS`` in the capture's own wall-clock time. Two
captures within the same second share an id; that limitation is accepted
rather than guarded against.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..logging_utils import get_logger
from ..metadata.exif_writer import embed_metadata
from .model import ENTRY_ID_FORMAT, GeoFix, SurveyEntry, SurveyForm

LOGGER = get_logger(__name__)


def entry_id_for(captured_at: datetime) -> str:
    """Return the entry id for a capture instant."""

    return captured_at.strftime(ENTRY_ID_FORMAT)


def create_entry(
    form: SurveyForm,
    gps: Optional[GeoFix],
    raw_photo: Optional[bytes],
    *,
    captured_at: Optional[datetime] = None,
) -> SurveyEntry:
    """Create an immutable entry whose photo carries the survey metadata.

    ``captured_at`` defaults to now in the local timezone. When embedding
    fails the entry keeps the photo as captured and records the failure in
    ``embedding_failure``; creation itself never fails because of metadata.
    """

    moment = captured_at or datetime.now().astimezone()
    location = form.location
    if not location and gps is not None:
        location = gps.as_label()

    provisional = SurveyEntry(
        entry_id=entry_id_for(moment),
        captured_at=moment,
        height_cm=form.height_cm,
        planting_year=form.planting_year,
        species=form.species,
        health_status=form.health_status,
        location=location,
        job_name=form.job_name,
        supervisor=form.supervisor,
        vendor=form.vendor,
        team=form.team,
        gps=gps,
    )
    result = embed_metadata(raw_photo, provisional)
    entry = replace(provisional, photo=result.photo, embedding_failure=result.failure)
    LOGGER.info(
        "Created entry %s species=%s health=%s gps=%s embedded=%s",
        entry.entry_id,
        entry.species,
        entry.health_status.value,
        "yes" if gps else "no",
        result.embedded,
    )
    return entry
