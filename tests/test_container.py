import sys
from types import SimpleNamespace

import pytest

from attendance_verifier.container import (
    Container,
    KioskSettings,
    build_container,
    build_location_provider,
    build_session,
)
from attendance_verifier.core.enums import Population, SessionState, VerificationMethod
from attendance_verifier.core.exceptions import ValidationError
from attendance_verifier.database.connection import DatabaseConnection
from attendance_verifier.policy.model import Location
from attendance_verifier.verification.location import FixedLocationProvider, TimedLocationProvider


def test_kiosk_settings_from_settings_module():
    settings = SimpleNamespace(
        SCHOOL_ID="5",
        CAMERA_DEVICE_ID=2,
        MAX_DESCRIPTOR_DISTANCE=1.2,
        CODE_COOLDOWN_SECONDS=1,
        BIOMETRIC_COOLDOWN_SECONDS=4,
        LOCATION_TIMEOUT_SECONDS=3,
        KIOSK_LATITUDE="0.3476",
        KIOSK_LONGITUDE="32.5825",
        FACE_FALLBACK=True,
    )

    kiosk = KioskSettings.from_module(settings)

    assert kiosk.school_id == 5
    assert kiosk.camera_device_id == 2
    assert kiosk.max_descriptor_distance == 1.2
    assert kiosk.biometric_cooldown_seconds == 4.0
    assert kiosk.kiosk_location == Location(0.3476, 32.5825)
    assert kiosk.face_fallback is True


def test_kiosk_settings_defaults_without_coordinates():
    kiosk = KioskSettings.from_module(SimpleNamespace(KIOSK_LATITUDE=None, KIOSK_LONGITUDE=""))

    assert kiosk.kiosk_location is None
    assert kiosk.code_cooldown_seconds == 2.0
    assert kiosk.biometric_cooldown_seconds == 3.0


class NullSource:
    def open(self):
        pass

    def read(self):
        return None

    def release(self):
        pass


class NullDecoder:
    def decode(self, frame):
        return None


def test_build_session_uses_given_source_and_decoder():
    container = Container(kiosk=KioskSettings(code_cooldown_seconds=1.0), verification_service=object())

    session = build_session(
        container,
        population=Population.TEACHER,
        method=VerificationMethod.CODE,
        on_outcome=lambda event: None,
        source=NullSource(),
        decoder=NullDecoder(),
    )

    assert session.population == Population.TEACHER
    assert session.state == SessionState.IDLE


def test_kiosk_settings_reject_non_positive_values():
    with pytest.raises(ValidationError):
        KioskSettings(max_descriptor_distance=0)
    with pytest.raises(ValidationError):
        KioskSettings(code_cooldown_seconds=-1)


FIX = Location(0.3477, 32.5826, accuracy_meters=6.0)
DB_CONFIG = {"host": "localhost", "port": 3306, "user": "kiosk", "password": "", "database": "school_attendance"}


@pytest.fixture()
def gps_module(monkeypatch):
    monkeypatch.setitem(sys.modules, "kiosk_gps", SimpleNamespace(read_fix=lambda: FIX, PORT="/dev/ttyUSB0"))


@pytest.fixture()
def fresh_connection(monkeypatch):
    monkeypatch.setattr(DatabaseConnection, "_instance", None)


def test_kiosk_settings_reads_location_query():
    kiosk = KioskSettings.from_module(SimpleNamespace(LOCATION_QUERY=" kiosk_gps:read_fix "))
    assert kiosk.location_query == "kiosk_gps:read_fix"
    assert KioskSettings.from_module(SimpleNamespace(LOCATION_QUERY="")).location_query is None


def test_fixed_coordinates_without_location_query():
    provider = build_location_provider(KioskSettings(kiosk_location=FIX))

    assert isinstance(provider, FixedLocationProvider)
    assert provider.current_location(timeout=1.0) == FIX


def test_location_query_selects_timed_provider(gps_module, fresh_connection):
    container = build_container(
        db_config=DB_CONFIG,
        kiosk=KioskSettings(location_query="kiosk_gps:read_fix", location_timeout_seconds=2.0),
    )
    try:
        assert isinstance(container.location_provider, TimedLocationProvider)
        assert container.location_provider.current_location(timeout=1.0) == FIX
    finally:
        container.close()


def test_container_close_shuts_down_location_worker(gps_module):
    provider = build_location_provider(KioskSettings(location_query="kiosk_gps:read_fix"))
    container = Container(kiosk=KioskSettings(), verification_service=object(), location_provider=provider)

    container.close()

    with pytest.raises(RuntimeError):
        provider.current_location(timeout=1.0)


@pytest.mark.parametrize("query", ["kiosk_gps", "kiosk_gps:missing", "kiosk_gps:PORT", "no_such_gps_module:read"])
def test_bad_location_query_is_rejected(gps_module, query):
    with pytest.raises(ValidationError):
        build_location_provider(KioskSettings(location_query=query))
