from __future__ import annotations

from typing import Optional, Tuple

from ..common.distance import haversine_meters
from ..core.enums import GeofenceVerdict
from ..core.exceptions import LocationUnavailable
from .model import GeofenceContext, Location


def check_geofence(geofence: GeofenceContext, location: Optional[Location]) -> Tuple[GeofenceVerdict, float]:
    """Distance from the school and whether it lies inside the fence.

    Raises LocationUnavailable when there is no fix; a missing location is
    never treated as inside or outside.
    """
    if location is None:
        raise LocationUnavailable("Device location could not be determined")

    distance = haversine_meters(
        location.latitude,
        location.longitude,
        float(geofence.school_latitude),
        float(geofence.school_longitude),
    )
    if distance <= geofence.radius_meters:
        return GeofenceVerdict.INSIDE, distance
    return GeofenceVerdict.OUTSIDE, distance
