from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import FrozenSet, Optional

from ..core.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_GEOFENCE_RADIUS_METERS,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_SCHOOL_END,
    DEFAULT_SCHOOL_START,
)
from ..core.enums import AttendanceStatus, GeofenceVerdict, Population


@dataclass(frozen=True)
class AttendancePolicy:
    """School-hours and method policy (per school, read per attempt)."""

    start_time: time = DEFAULT_SCHOOL_START
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    end_time: time = DEFAULT_SCHOOL_END
    require_biometric_for: FrozenSet[Population] = field(default_factory=frozenset)
    enable_code_scanning: bool = True
    enable_face_recognition: bool = False
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD


@dataclass(frozen=True)
class GeofenceContext:
    enabled: bool
    school_latitude: Optional[float]
    school_longitude: Optional[float]
    radius_meters: float = DEFAULT_GEOFENCE_RADIUS_METERS
    populations: FrozenSet[Population] = frozenset({Population.TEACHER})

    @property
    def is_active(self) -> bool:
        return self.enabled and self.school_latitude is not None and self.school_longitude is not None

    def applies_to(self, population: Population) -> bool:
        return self.is_active and population in self.populations


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None


@dataclass(frozen=True)
class PolicyDecision:
    status: AttendanceStatus
    geofence_verdict: GeofenceVerdict = GeofenceVerdict.NOT_APPLICABLE
    distance_meters: Optional[float] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class SettingsSnapshot:
    """Policy and geofence read together, from one settings row."""

    policy: AttendancePolicy = field(default_factory=AttendancePolicy)
    geofence: Optional[GeofenceContext] = None
