from __future__ import annotations

import json
import re
from typing import Any, Optional

from ..core.enums import Population
from ..core.exceptions import MalformedPayload, PersonNotFound
from .model import PersonRecord
from .repository import RosterRepository

_POPULATION_KEYS = {
    Population.STUDENT: "studentId",
    Population.TEACHER: "teacherId",
}
_TYPE_KEYS = ("type", "personType")
# Whole payload is the id ("42"), or the id follows a separator ("STU-42", "T:7").
_BARE_ID = re.compile(r"^(?:.+[-_:])?(\d+)$")


def _as_person_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _check_badge_population(data: dict, population: Population) -> None:
    for key in _TYPE_KEYS:
        badge_type = data.get(key)
        if badge_type is None:
            continue
        if str(badge_type).strip().lower() != population.value:
            raise MalformedPayload(f"Badge is for a {badge_type}, scanned at the {population.value} kiosk")

    for other, key in _POPULATION_KEYS.items():
        if other != population and key in data:
            raise MalformedPayload(f"Badge carries a {other.value} id, scanned at the {population.value} kiosk")


def _from_json(payload: str, population: Population) -> Optional[int]:
    try:
        data = json.loads(payload)
    except ValueError:
        return None

    if isinstance(data, dict):
        _check_badge_population(data, population)
        for key in ("personId", _POPULATION_KEYS[population], "id"):
            person_id = _as_person_id(data.get(key))
            if person_id is not None:
                return person_id
        return None
    return _as_person_id(data)


def parse_code_payload(payload: str, population: Population) -> int:
    """Extract the person id from a scanned badge.

    Structured badges are JSON objects (`{"id": 42}`, `{"studentId": 42}`,
    `{"personId": 42, "type": "student"}`); a badge whose type or id key
    names the other population is refused. Plain badges carry the id itself,
    possibly behind a prefix such as `STU-42`.
    """
    text = (payload or "").strip()
    if not text:
        raise MalformedPayload("Empty code payload")

    person_id = _from_json(text, population)
    if person_id is not None:
        return person_id

    m = _BARE_ID.match(text)
    if m:
        person_id = _as_person_id(m.group(1))
        if person_id is not None:
            return person_id

    raise MalformedPayload(f"Code payload does not contain a person id: {text[:64]!r}")


def resolve_code(payload: str, population: Population, roster: RosterRepository) -> PersonRecord:
    person_id = parse_code_payload(payload, population)
    person = roster.get_person(population, person_id)
    if person is None:
        raise PersonNotFound(f"No {population.value} with id {person_id}", person_hint=person_id)
    return person
