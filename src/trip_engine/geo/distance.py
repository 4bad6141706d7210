"""Great-circle distance calculations and the position value type.

Distances are computed with the Haversine formula on a spherical Earth
of radius 6371 km. All public helpers take degrees and convert to
radians internally.
"""

import math
from math import asin, atan2, cos, degrees, radians, sin, sqrt

from pydantic import BaseModel, ConfigDict, Field

from trip_engine.core.exceptions import InvalidPosition

EARTH_RADIUS_KM = 6371.0


class GeoPosition(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    @classmethod
    def parse(cls, lat: object, lng: object) -> "GeoPosition":
        """Build a position from raw fix values, raising InvalidPosition if malformed."""
        try:
            lat_f = float(lat)  # type: ignore[arg-type]
            lng_f = float(lng)  # type: ignore[arg-type]
        except (TypeError, ValueError) as e:
            raise InvalidPosition(
                f"Non-numeric coordinates: lat={lat!r}, lng={lng!r}",
                details={"lat": lat, "lng": lng},
            ) from e

        if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
            raise InvalidPosition(
                f"Non-finite coordinates: lat={lat_f}, lng={lng_f}",
                details={"lat": lat_f, "lng": lng_f},
            )
        if not -90.0 <= lat_f <= 90.0:
            raise InvalidPosition(f"Latitude out of range: {lat_f}", details={"lat": lat_f})
        if not -180.0 <= lng_f <= 180.0:
            raise InvalidPosition(f"Longitude out of range: {lng_f}", details={"lng": lng_f})

        return cls(lat=lat_f, lng=lng_f)


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push near-antipodal points just past 1
    a = min(1.0, max(0.0, a))
    c =2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(start: GeoPosition, end: GeoPosition) -> float:
    """Great-circle distance in kilometers between two positions."""
    return haversine_distance_km(start.lat, start.lng, end.lat, end.lng)


def destination_point(
    origin: GeoPosition, bearing_deg: float, distance_km: float
) -> GeoPosition:
    """Point reached by travelling distance_km from origin along an initial bearing."""
    lat1 = radians(origin.lat)
    lon1 = radians(origin.lng)
    bearing = radians(bearing_deg)
    angular = distance_km / EARTH_RADIUS_KM

    lat2 = asin(sin(lat1) * cos(angular) + cos(lat1) * sin(angular) * cos(bearing))
    lon2 = lon1 + atan2(
        sin(bearing) * sin(angular) * cos(lat1),
        cos(angular) - sin(lat1) * sin(lat2),
    )

    # Normalize longitude to [-180, 180)
    lng = (degrees(lon2) + 540.0) % 360.0 - 180.0
    return GeoPosition(lat=degrees(lat2), lng=lng)
