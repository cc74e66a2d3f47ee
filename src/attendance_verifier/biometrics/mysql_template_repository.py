from __future__ import annotations

import logging
from typing import Sequence

from ..core.enums import Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_json_vector
from .model import EnrolledTemplate
from .repository import TemplateRepository

logger = logging.getLogger(__name__)


class MySQLTemplateRepository(TemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, school_id: int):
        self._conn_factory = conn_factory
        self._school_id = int(school_id)

    def list_for(self, population: Population) -> Sequence[EnrolledTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, person_id, person_type, embedding
                FROM face_embeddings
                WHERE school_id=%s AND person_type=%s AND is_active=1
                ORDER BY person_id, id
                """,
                (self._school_id, Population(population).value),
            )
            rows = fetchall(cur)

        templates = []
        for r in rows:
            try:
                descriptor = normalize_json_vector(r["embedding"])
            except (TypeError, ValueError) as e:
                logger.warning("Skipping unreadable face embedding id=%s: %s", r.get("id"), e)
                continue
            templates.append(
                EnrolledTemplate.of(
                    person_id=int(r["person_id"]),
                    population=Population(r["person_type"]),
                    descriptor=descriptor,
                    template_id=int(r["id"]),
                )
            )
        return templates
