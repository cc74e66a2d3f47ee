"""Distance and confidence functions shared by the matcher and the geofence.

All functions are pure; they never look at configuration.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

from ..core.constants import DEFAULT_MAX_DESCRIPTOR_DISTANCE, EARTH_RADIUS_METERS
from ..core.exceptions import DimensionMismatch, InvalidCoordinate, ValidationError

Vector = Union[Sequence[float], np.ndarray]


def euclidean_distance(a: Vector, b: Vector) -> float:
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape != vb.shape:
        raise DimensionMismatch(f"Descriptor dimensions differ: {va.size} != {vb.size}")
    return float(np.linalg.norm(va - vb))


def distance_to_confidence(distance: float, max_distance: float = DEFAULT_MAX_DESCRIPTOR_DISTANCE) -> float:
    """Map a descriptor distance onto [0, 1]; 0 distance is full confidence.

    confidence = clamp(1 - distance / max_distance, 0, 1)
    """
    if not max_distance > 0:
        raise ValidationError("max_distance must be positive")
    if math.isnan(distance):
        return 0.0
    confidence = 1.0 - (distance / max_distance)
    return min(1.0, max(0.0, confidence))


def _check_coordinate(lat: float, lon: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Coordinate is not a finite number: ({lat}, {lon})")
    if abs(lat) > 90 or abs(lon) > 180:
        raise InvalidCoordinate(f"Coordinate out of range: ({lat}, {lon})")


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two WGS84 points in meters."""
    _check_coordinate(lat1, lon1)
    _check_coordinate(lat2, lon2)

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c
