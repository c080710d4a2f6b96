"""Mini README: Survey entries package.

Groups the record types (``model``), entry creation (``capture``), the
append-only ``EntryCollection`` and dashboard analytics.
"""

from .model import GeoFix, HealthStatus, SurveyEntry, SurveyForm
from .capture import create_entry, entry_id_for
from .collection import EntryCollection
from .analytics import summarise_metrics

__all__ = [
    "EntryCollection",
    "GeoFix",
    "HealthStatus",
    "SurveyEntry",
    "SurveyForm",
    "create_entry",
    "entry_id_for",
    "summarise_metrics",
]
