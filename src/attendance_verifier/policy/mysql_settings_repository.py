from __future__ import annotations

from datetime import time, timedelta
from typing import Any, Dict, Optional

from ..common.datetime_utils import parse_clock
from ..common.validators import require_unit_interval
from ..core.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_GEOFENCE_RADIUS_METERS,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_SCHOOL_END,
    DEFAULT_SCHOOL_START,
)
from ..core.enums import Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import AttendancePolicy, GeofenceContext, SettingsSnapshot
from .repository import SettingsRepository


def _opt_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _clock(value: Any, fallback: time) -> time:
    # Column is VARCHAR ("08:00") in the shipped schema, TIME in older installs.
    if isinstance(value, (time, timedelta)):
        return normalize_mysql_time(value)
    return parse_clock(value, fallback)


class MySQLSettingsRepository(SettingsRepository):
    """Reads the school's `attendance_settings` row on every call.

    One query per snapshot. A school without a row gets the defaults (no geofence).
    """

    def __init__(self, conn_factory: DatabaseConnection, *, school_id: int):
        self._conn_factory = conn_factory
        self._school_id = int(school_id)

    def _load(self) -> Optional[Dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT school_start_time, late_threshold_minutes, school_end_time,
                       enable_face_recognition, enable_qr_scanning,
                       require_face_for_gate, require_face_for_teachers,
                       face_confidence_threshold,
                       enable_geofencing, school_latitude, school_longitude, geofence_radius_meters
                FROM attendance_settings
                WHERE school_id=%s
                """,
                (self._school_id,),
            )
            return fetchone(cur)

    def get_snapshot(self) -> SettingsSnapshot:
        row = self._load()
        if not row:
            return SettingsSnapshot()
        return SettingsSnapshot(policy=self._policy_from_row(row), geofence=self._geofence_from_row(row))

    @staticmethod
    def _policy_from_row(row: Dict[str, Any]) -> AttendancePolicy:
        require_biometric = set()
        if row.get("require_face_for_gate"):
            require_biometric.add(Population.STUDENT)
        if row.get("require_face_for_teachers"):
            require_biometric.add(Population.TEACHER)

        late = row.get("late_threshold_minutes")
        threshold = row.get("face_confidence_threshold")
        return AttendancePolicy(
            start_time=_clock(row.get("school_start_time"), DEFAULT_SCHOOL_START),
            late_threshold_minutes=int(late) if late is not None else DEFAULT_LATE_THRESHOLD_MINUTES,
            end_time=_clock(row.get("school_end_time"), DEFAULT_SCHOOL_END),
            require_biometric_for=frozenset(require_biometric),
            enable_code_scanning=bool(row.get("enable_qr_scanning", True)),
            enable_face_recognition=bool(row.get("enable_face_recognition", False)),
            confidence_threshold=(
                require_unit_interval(float(threshold), "face_confidence_threshold")
                if threshold is not None
                else DEFAULT_CONFIDENCE_THRESHOLD
            ),
        )

    @staticmethod
    def _geofence_from_row(row: Dict[str, Any]) -> Optional[GeofenceContext]:
        if not row.get("enable_geofencing"):
            return None
        radius = row.get("geofence_radius_meters")
        return GeofenceContext(
            enabled=True,
            school_latitude=_opt_float(row.get("school_latitude")),
            school_longitude=_opt_float(row.get("school_longitude")),
            radius_meters=float(radius) if radius else DEFAULT_GEOFENCE_RADIUS_METERS,
        )
