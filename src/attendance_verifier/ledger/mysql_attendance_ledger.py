from __future__ import annotations

import logging
from datetime import date, datetime

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, Direction, Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from ..roster.mysql_roster_repository import ROSTER_TABLES
from .model import AttendanceOutcome, CommitResult
from .repository import AttendanceLedger

logger = logging.getLogger(__name__)


class MySQLAttendanceLedger(AttendanceLedger):
    def __init__(self, conn_factory: DatabaseConnection, *, school_id: int):
        self._conn_factory = conn_factory
        self._school_id = int(school_id)

    def has_record(self, population: Population, person_id: int, work_date: date, direction: Direction) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id
                FROM attendance_records
                WHERE school_id=%s AND person_type=%s AND person_id=%s AND work_date=%s AND direction=%s
                LIMIT 1
                """,
                (self._school_id, population.value, int(person_id), work_date, direction.value),
            )
            return fetchone(cur) is not None

    def is_marked_absent(self, population: Population, person_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id
                FROM attendance_records
                WHERE school_id=%s AND person_type=%s AND person_id=%s AND work_date=%s
                  AND direction=%s AND status=%s
                LIMIT 1
                """,
                (
                    self._school_id,
                    population.value,
                    int(person_id),
                    work_date,
                    Direction.CHECK_IN.value,
                    AttendanceStatus.ABSENT.value,
                ),
            )
            return fetchone(cur) is not None

    def commit(self, outcome: AttendanceOutcome) -> CommitResult:
        location = outcome.location
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        school_id, person_type, person_id, work_date, direction, recorded_at,
                        status, method, confidence, latitude, longitude, accuracy_meters,
                        distance_meters, note
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        self._school_id,
                        outcome.population.value,
                        outcome.person_id,
                        outcome.work_date,
                        outcome.direction.value,
                        outcome.timestamp,
                        outcome.status.value,
                        outcome.method.value,
                        outcome.confidence,
                        location.latitude if location else None,
                        location.longitude if location else None,
                        location.accuracy_meters if location else None,
                        outcome.distance_meters,
                        outcome.note,
                    ),
                )
        except IntegrityError as e:
            if e.errno != errorcode.ER_DUP_ENTRY:
                raise
            logger.info(
                "Duplicate %s for %s %s on %s rejected by unique key",
                outcome.direction.value,
                outcome.population.value,
                outcome.person_id,
                outcome.work_date,
            )
            return CommitResult.CONFLICT
        return CommitResult.ACK

    def mark_absent(self, population: Population, work_date: date, recorded_at: datetime) -> int:
        population = Population(population)
        table = ROSTER_TABLES[population]
        with db_cursor(self._conn_factory) as (_, cur):
            # Anyone with any record that day (check-in or check-out) is left alone.
            cur.execute(
                f"""
                INSERT INTO attendance_records(
                    school_id, person_type, person_id, work_date, direction, recorded_at, status, method, note
                )
                SELECT %s, %s, p.id, %s, %s, %s, %s, NULL, %s
                FROM {table} p
                WHERE p.school_id=%s AND p.is_active=1
                  AND NOT EXISTS (
                      SELECT 1
                      FROM attendance_records r
                      WHERE r.school_id=%s AND r.person_type=%s AND r.person_id=p.id AND r.work_date=%s
                  )
                """,
                (
                    self._school_id,
                    population.value,
                    work_date,
                    Direction.CHECK_IN.value,
                    recorded_at,
                    AttendanceStatus.ABSENT.value,
                    "No check-in recorded",
                    self._school_id,
                    self._school_id,
                    population.value,
                    work_date,
                ),
            )
            marked = max(int(cur.rowcount or 0), 0)
        logger.info("Marked %s %s absent for %s", marked, population.value, work_date)
        return marked
