from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .biometrics.matcher import IdentityMatcher
from .biometrics.mysql_template_repository import MySQLTemplateRepository
from .common.validators import require_positive
from .core.constants import (
    DEFAULT_BIOMETRIC_COOLDOWN_SECONDS,
    DEFAULT_CAMERA_DEVICE_ID,
    DEFAULT_CODE_COOLDOWN_SECONDS,
    DEFAULT_LOCATION_TIMEOUT_SECONDS,
    DEFAULT_MAX_DESCRIPTOR_DISTANCE,
)
from .core.enums import Direction, Population, VerificationMethod
from .core.exceptions import ValidationError
from .database.connection import DatabaseConnection
from .ledger.mysql_attendance_ledger import MySQLAttendanceLedger
from .policy.evaluator import PolicyEvaluator
from .policy.factory import AttendanceStrategyFactory
from .policy.model import Location
from .policy.mysql_settings_repository import MySQLSettingsRepository
from .roster.mysql_roster_repository import MySQLRosterRepository
from .verification.location import FixedLocationProvider, LocationProvider, TimedLocationProvider
from .verification.model import OutcomeEvent
from .verification.service import VerificationService
from .verification.session import Decoder, FrameSource, VerificationSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KioskSettings:
    school_id: int = 1
    camera_device_id: int = DEFAULT_CAMERA_DEVICE_ID
    max_descriptor_distance: float = DEFAULT_MAX_DESCRIPTOR_DISTANCE
    code_cooldown_seconds: float = DEFAULT_CODE_COOLDOWN_SECONDS
    biometric_cooldown_seconds: float = DEFAULT_BIOMETRIC_COOLDOWN_SECONDS
    location_timeout_seconds: float = DEFAULT_LOCATION_TIMEOUT_SECONDS
    kiosk_location: Optional[Location] = None
    face_fallback: bool = False
    location_query: Optional[str] = None

    def __post_init__(self) -> None:
        require_positive(self.max_descriptor_distance, "MAX_DESCRIPTOR_DISTANCE")
        require_positive(self.code_cooldown_seconds, "CODE_COOLDOWN_SECONDS")
        require_positive(self.biometric_cooldown_seconds, "BIOMETRIC_COOLDOWN_SECONDS")
        require_positive(self.location_timeout_seconds, "LOCATION_TIMEOUT_SECONDS")

    @classmethod
    def from_module(cls, settings: Any) -> "KioskSettings":
        lat = getattr(settings, "KIOSK_LATITUDE", None)
        lon = getattr(settings, "KIOSK_LONGITUDE", None)
        location = Location(float(lat), float(lon)) if lat not in (None, "") and lon not in (None, "") else None
        return cls(
            school_id=int(getattr(settings, "SCHOOL_ID", 1)),
            camera_device_id=int(getattr(settings, "CAMERA_DEVICE_ID", DEFAULT_CAMERA_DEVICE_ID)),
            max_descriptor_distance=float(getattr(settings, "MAX_DESCRIPTOR_DISTANCE", DEFAULT_MAX_DESCRIPTOR_DISTANCE)),
            code_cooldown_seconds=float(getattr(settings, "CODE_COOLDOWN_SECONDS", DEFAULT_CODE_COOLDOWN_SECONDS)),
            biometric_cooldown_seconds=float(
                getattr(settings, "BIOMETRIC_COOLDOWN_SECONDS", DEFAULT_BIOMETRIC_COOLDOWN_SECONDS)
            ),
            location_timeout_seconds=float(
                getattr(settings, "LOCATION_TIMEOUT_SECONDS", DEFAULT_LOCATION_TIMEOUT_SECONDS)
            ),
            kiosk_location=location,
            face_fallback=bool(getattr(settings, "FACE_FALLBACK", False)),
            location_query=(getattr(settings, "LOCATION_QUERY", None) or "").strip() or None,
        )


@dataclass(frozen=True)
class Container:
    kiosk: KioskSettings
    verification_service: VerificationService

    conn: Optional[DatabaseConnection] = None
    roster_repo: Any = None
    templates_repo: Any = None
    settings_repo: Any = None
    ledger: Any = None
    location_provider: Optional[LocationProvider] = None

    def close(self) -> None:
        if self.location_provider is not None:
            self.location_provider.close()


def resolve_location_query(path: str) -> Callable[[], Optional[Location]]:
    """Import a `package.module:function` that returns the kiosk's current Location."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValidationError(f"LOCATION_QUERY must look like 'package.module:function', got {path!r}")
    try:
        query = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ValidationError(f"LOCATION_QUERY {path!r} cannot be loaded: {e}") from None
    if not callable(query):
        raise ValidationError(f"LOCATION_QUERY {path!r} is not callable")
    return query


def build_location_provider(kiosk: KioskSettings) -> LocationProvider:
    if kiosk.location_query:
        logger.info("Kiosk location from %s (timeout %.1fs)", kiosk.location_query, kiosk.location_timeout_seconds)
        return TimedLocationProvider(resolve_location_query(kiosk.location_query))
    return FixedLocationProvider(kiosk.kiosk_location)


def build_container(*, db_config: dict, kiosk: KioskSettings | None = None) -> Container:
    kiosk = kiosk or KioskSettings()
    conn = DatabaseConnection.from_dict(db_config)

    roster_repo = MySQLRosterRepository(conn, school_id=kiosk.school_id)
    templates_repo = MySQLTemplateRepository(conn, school_id=kiosk.school_id)
    settings_repo = MySQLSettingsRepository(conn, school_id=kiosk.school_id)
    ledger = MySQLAttendanceLedger(conn, school_id=kiosk.school_id)
    location_provider = build_location_provider(kiosk)

    verification_service = VerificationService(
        roster_repo,
        templates_repo,
        settings_repo,
        ledger,
        matcher=IdentityMatcher(max_distance=kiosk.max_descriptor_distance),
        evaluator=PolicyEvaluator(strategy_factory=AttendanceStrategyFactory()),
        location_provider=location_provider,
        location_timeout=kiosk.location_timeout_seconds,
    )

    return Container(
        kiosk=kiosk,
        verification_service=verification_service,
        conn=conn,
        roster_repo=roster_repo,
        templates_repo=templates_repo,
        settings_repo=settings_repo,
        ledger=ledger,
        location_provider=location_provider,
    )


def build_session(
    container: Container,
    *,
    population: Population,
    method: VerificationMethod,
    on_outcome: Callable[[OutcomeEvent], None],
    direction: Optional[Direction] = None,
    source: Optional[FrameSource] = None,
    decoder: Optional[Decoder] = None,
    poll_interval: float = 0.0,
) -> VerificationSession:
    """Wire a scanning session for one kiosk: camera, decoder and service.

    The OpenCV/pyzbar/face_recognition adapters are imported lazily so a
    code-only kiosk does not need dlib installed.
    """
    if source is None:
        from .verification.camera import OpenCVCameraSource

        source = OpenCVCameraSource(container.kiosk.camera_device_id)

    if decoder is None:
        if method == VerificationMethod.CODE:
            from .decoders.qr import QRCodeDecoder

            decoder = QRCodeDecoder()
        else:
            from .decoders.face import FaceDescriptorDecoder

            decoder = FaceDescriptorDecoder()

    return VerificationSession(
        container.verification_service,
        source,
        decoder,
        population=population,
        direction=direction,
        on_outcome=on_outcome,
        code_cooldown_seconds=container.kiosk.code_cooldown_seconds,
        biometric_cooldown_seconds=container.kiosk.biometric_cooldown_seconds,
        poll_interval=poll_interval,
    )
