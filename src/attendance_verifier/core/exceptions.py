from __future__ import annotations

from typing import Optional

from .enums import RejectionReason


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class VerificationError(DomainError):
    """A verification attempt failed and must be reported as rejected.

    Every subclass carries a `reason` code the kiosk UI can render, plus an
    optional hint about who was scanned.
    """

    reason: RejectionReason = RejectionReason.INTERNAL_ERROR

    def __init__(
        self,
        message: str = "",
        *,
        person_hint: Optional[int] = None,
        distance_meters: Optional[float] = None,
    ):
        super().__init__(message or self.reason.value)
        self.person_hint = person_hint
        self.distance_meters = distance_meters


class DimensionMismatch(VerificationError):
    reason = RejectionReason.DIMENSION_MISMATCH


class InvalidCoordinate(VerificationError):
    reason = RejectionReason.INVALID_COORDINATE


class MalformedPayload(VerificationError):
    reason = RejectionReason.MALFORMED_PAYLOAD


class PersonNotFound(VerificationError):
    reason = RejectionReason.PERSON_NOT_FOUND


class NoMatch(VerificationError):
    reason = RejectionReason.NO_MATCH


class LowConfidence(VerificationError):
    reason = RejectionReason.LOW_CONFIDENCE


class BiometricRequired(VerificationError):
    reason = RejectionReason.BIOMETRIC_REQUIRED


class MethodDisabled(VerificationError):
    reason = RejectionReason.METHOD_DISABLED


class LocationUnavailable(VerificationError):
    reason = RejectionReason.LOCATION_UNAVAILABLE


class OutsideGeofence(VerificationError):
    reason = RejectionReason.OUTSIDE_GEOFENCE


class AlreadyRecorded(VerificationError):
    reason = RejectionReason.ALREADY_RECORDED


class NotCheckedIn(VerificationError):
    reason = RejectionReason.NOT_CHECKED_IN


class CameraUnavailable(VerificationError):
    """Fatal to a scanning session: the frame source could not be opened."""

    reason = RejectionReason.CAMERA_UNAVAILABLE
