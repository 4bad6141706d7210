from .accumulator import DistanceAccumulator
from .distance import (
    EARTH_RADIUS_KM,
    GeoPosition,
    destination_point,
    distance_between,
    haversine_distance_km,
)
from .sample_filter import DEFAULT_NOISE_THRESHOLD_KM, FilterDecision, GeoSampleFilter

__all__ = [
    "EARTH_RADIUS_KM",
    "GeoPosition",
    "haversine_distance_km",
    "distance_between",
    "destination_point",
    "GeoSampleFilter",
    "FilterDecision",
    "DEFAULT_NOISE_THRESHOLD_KM",
    "DistanceAccumulator",
]
