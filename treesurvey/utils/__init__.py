"""Mini README: Utility helper functions for treesurvey.

Exports the great-circle helpers shared by analytics and the KMZ exporter,
and the photo format sniffing used wherever stored photos are named or
served.
"""

from .geo_math import (
    EARTH_RADIUS_M,
    average_pairwise_distance,
    bounding_box_area_hectares,
    great_circle_distance_meters,
    planting_density,
)
from .image_format import PhotoFormat, detect_photo_format

__all__ = [
    "EARTH_RADIUS_M",
    "PhotoFormat",
    "average_pairwise_distance",
    "bounding_box_area_hectares",
    "detect_photo_format",
    "great_circle_distance_meters",
    "planting_density",
]
