from __future__ import annotations

from typing import Optional

from ..core.enums import Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import PersonRecord
from .repository import RosterRepository

ROSTER_TABLES = {
    Population.STUDENT: "students",
    Population.TEACHER: "teachers",
}


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, school_id: int):
        self._conn_factory = conn_factory
        self._school_id = int(school_id)

    def get_person(self, population: Population, person_id: int) -> Optional[PersonRecord]:
        table = ROSTER_TABLES[Population(population)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, full_name
                FROM {table}
                WHERE id=%s AND school_id=%s AND is_active=1
                """,
                (int(person_id), self._school_id),
            )
            row = fetchone(cur)
            if not row:
                return None
            return PersonRecord(
                person_id=int(row["id"]),
                full_name=row["full_name"],
                population=Population(population),
            )
