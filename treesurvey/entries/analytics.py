"""Mini README: Aggregate statistics over a snapshot of survey entries.

Structure:
    * summarise_metrics - counts, mean heights and GIS figures in one dict.

Area, density and spacing are ``None`` whenever they do not apply (fewer than
two geotagged trees, or all trees at one spot) so the UI can print "N/A".
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List, Sequence

from ..utils.geo_math import (
    average_pairwise_distance,
    bounding_box_area_hectares,
    planting_density,
)
from .model import HealthStatus, SurveyEntry


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def summarise_metrics(entries: Sequence[SurveyEntry]) -> Dict[str, Any]:
    """Aggregate survey insights for dashboard visualisation."""

    fixes = [entry.gps for entry in entries if entry.gps is not None]
    area_ha = bounding_box_area_hectares(fixes)

    health_counts = {status.value: 0 for status in HealthStatus}
    heights_by_health: Dict[str, List[int]] = defaultdict(list)
    heights_by_year: Dict[int, List[int]] = defaultdict(list)
    for entry in entries:
        health_counts[entry.health_status.value] += 1
        heights_by_health[entry.health_status.value].append(entry.height_cm)
        if entry.planting_year and entry.height_cm:
            heights_by_year[entry.planting_year].append(entry.height_cm)

    return {
        "total_entries": len(entries),
        "geotagged_entries": len(fixes),
        "health_counts": health_counts,
        "mean_height_by_health": {
            status.value: (
                _mean(heights_by_health[status.value]) if heights_by_health[status.value] else None
            )
            for status in HealthStatus
        },
        "mean_height_by_planting_year": [
            {"planting_year": year, "mean_height_cm": _mean(heights), "count": len(heights)}
            for year, heights in sorted(heights_by_year.items())
        ],
        "area_hectares": area_ha,
        "density_per_hectare": planting_density(len(fixes), area_ha),
        "average_distance_m": average_pairwise_distance(fixes),
    }
