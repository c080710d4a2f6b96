"""Mini README: Append-only owner of the local survey entries.

Structure:
    * EntryCollection - append, snapshot, lookup and whole-collection reset.

Exporters never iterate the live list: they take ``snapshot()``, a tuple
copy, so a capture appended mid-export is simply not part of that export.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..logging_utils import get_logger
from .analytics import summarise_metrics
from .capture import create_entry
from .model import GeoFix, SurveyEntry, SurveyForm

LOGGER = get_logger(__name__)


class EntryCollection:
    """Own survey entries in capture order."""

    def __init__(self, entries: Optional[Iterable[SurveyEntry]] = None) -> None:
        self._entries: List[SurveyEntry] = list(entries or [])
        LOGGER.debug("Initialised EntryCollection with %s entries", len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: SurveyEntry) -> SurveyEntry:
        """Add an entry at the end of the collection."""

        self._entries.append(entry)
        LOGGER.debug("Appended entry %s (collection size %s)", entry.entry_id, len(self._entries))
        return entry

    def capture(
        self,
        form: SurveyForm,
        gps: Optional[GeoFix],
        raw_photo: Optional[bytes],
        **kwargs: Any,
    ) -> SurveyEntry:
        """Create an entry from a capture and append it."""

        return self.append(create_entry(form, gps, raw_photo, **kwargs))

    def snapshot(self) -> Tuple[SurveyEntry, ...]:
        """Return an immutable point-in-time copy in append order."""

        return tuple(self._entries)

    def get(self, entry_id: str) -> SurveyEntry:
        """Retrieve the first entry with ``entry_id``, raising if unknown."""

        for entry in self._entries:
            if entry.entry_id == entry_id:
                return entry
        raise KeyError(f"Entry {entry_id} is not registered")

    def reset(self) -> int:
        """Drop every entry; returns how many were removed."""

        removed = len(self._entries)
        self._entries = []
        LOGGER.info("Reset entry collection, removed %s entries", removed)
        return removed

    def summarise_metrics(self) -> Dict[str, Any]:
        """Aggregate statistics over the current snapshot."""

        return summarise_metrics(self.snapshot())
