from __future__ import annotations

from enum import Enum


class Population(str, Enum):
    """Disjoint identity spaces a probe is matched within."""

    STUDENT = "student"
    TEACHER = "teacher"


class Direction(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class AttendanceStatus(str, Enum):
    """Status values stored with an attendance record."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    LEFT_EARLY = "left_early"


class VerificationMethod(str, Enum):
    CODE = "code"
    BIOMETRIC = "biometric"


class GeofenceVerdict(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    NOT_APPLICABLE = "not_applicable"


class RejectionReason(str, Enum):
    """Reason codes carried by every rejected attempt."""

    DIMENSION_MISMATCH = "dimension_mismatch"
    INVALID_COORDINATE = "invalid_coordinate"
    MALFORMED_PAYLOAD = "malformed_payload"
    PERSON_NOT_FOUND = "person_not_found"
    NO_MATCH = "no_match"
    LOW_CONFIDENCE = "low_confidence"
    BIOMETRIC_REQUIRED = "biometric_required"
    METHOD_DISABLED = "method_disabled"
    LOCATION_UNAVAILABLE = "location_unavailable"
    OUTSIDE_GEOFENCE = "outside_geofence"
    ALREADY_RECORDED = "already_recorded"
    NOT_CHECKED_IN = "not_checked_in"
    CAMERA_UNAVAILABLE = "camera_unavailable"
    INTERNAL_ERROR = "internal_error"


class SessionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    RESOLVING = "resolving"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COOLDOWN = "cooldown"
    STOPPED = "stopped"
