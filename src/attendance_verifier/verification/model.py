from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

from ..core.enums import RejectionReason, VerificationMethod
from ..ledger.model import AttendanceOutcome
from ..roster.model import PersonRecord


@dataclass(frozen=True)
class CodeProbe:
    """Payload read from a scanned badge."""

    payload: str

    @property
    def method(self) -> VerificationMethod:
        return VerificationMethod.CODE


@dataclass(frozen=True)
class BiometricProbe:
    """Face descriptor extracted from a live frame."""

    descriptor: Tuple[float, ...] = field(repr=False)

    @classmethod
    def of(cls, descriptor) -> "BiometricProbe":
        return cls(descriptor=tuple(float(v) for v in descriptor))

    @property
    def method(self) -> VerificationMethod:
        return VerificationMethod.BIOMETRIC


Probe = Union[CodeProbe, BiometricProbe]


@dataclass(frozen=True)
class Accepted:
    outcome: AttendanceOutcome
    person: PersonRecord


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    at: datetime
    method: Optional[VerificationMethod] = None
    person_hint: Optional[int] = None
    distance_meters: Optional[float] = None


OutcomeEvent = Union[Accepted, Rejected]
