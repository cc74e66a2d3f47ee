from dataclasses import dataclass, field
from typing import Optional

import pytest

from attendance_verifier.core.enums import Population
from attendance_verifier.core.exceptions import MalformedPayload, PersonNotFound
from attendance_verifier.decoders.badge import badge_payload
from attendance_verifier.roster.model import PersonRecord
from attendance_verifier.roster.payload import parse_code_payload, resolve_code


@dataclass
class InMemoryRoster:
    people: dict[tuple[Population, int], PersonRecord] = field(default_factory=dict)

    def add(self, population: Population, person_id: int, name: str) -> None:
        self.people[(population, person_id)] = PersonRecord(person_id, name, population)

    def get_person(self, population: Population, person_id: int) -> Optional[PersonRecord]:
        return self.people.get((population, person_id))


@pytest.mark.parametrize(
    "payload, expected",
    [
        ('{"personId": 42, "type": "student"}', 42),
        ('{"studentId": 17}', 17),
        ('{"id": "8"}', 8),
        ("42", 42),
        ("not-json-42", 42),
        ("STU-0042  ", 42),
        ("T:7", 7),
        ("stu_19", 19),
    ],
)
def test_parse_student_payloads(payload, expected):
    assert parse_code_payload(payload, Population.STUDENT) == expected


def test_teacher_key_is_used_for_teacher_badges():
    assert parse_code_payload('{"teacherId": 5}', Population.TEACHER) == 5


def test_person_id_key_wins_over_population_key():
    assert parse_code_payload('{"personId": 3, "studentId": 4}', Population.STUDENT) == 3


@pytest.mark.parametrize(
    "payload",
    [
        "",
        "   ",
        "hello",
        '{"name": "x"}',
        "0",
        "-42",
        "ID-0",
        "true",
        "42.5",
        "STU42",
        "https://school.example/badges/12",
    ],
)
def test_malformed_payloads(payload):
    with pytest.raises(MalformedPayload):
        parse_code_payload(payload, Population.STUDENT)


def test_resolve_code_returns_roster_record():
    roster = InMemoryRoster()
    roster.add(Population.STUDENT, 42, "Amina Nakato")

    person = resolve_code("not-json-42", Population.STUDENT, roster)

    assert person.full_name == "Amina Nakato"
    assert person.population == Population.STUDENT


def test_resolve_code_unknown_person_keeps_hint():
    roster = InMemoryRoster()
    roster.add(Population.TEACHER, 42, "Mr. Okello")

    with pytest.raises(PersonNotFound) as exc:
        resolve_code('{"personId": 42}', Population.STUDENT, roster)

    assert exc.value.person_hint == 42


def test_teacher_badge_is_refused_at_student_gate():
    with pytest.raises(MalformedPayload):
        parse_code_payload('{"personId":7,"type":"teacher"}', Population.STUDENT)


def test_person_type_key_is_checked_too():
    with pytest.raises(MalformedPayload):
        parse_code_payload('{"id": 7, "personType": "student"}', Population.TEACHER)
    assert parse_code_payload('{"id": 7, "personType": "Teacher"}', Population.TEACHER) == 7


def test_other_population_id_key_is_refused():
    with pytest.raises(MalformedPayload):
        parse_code_payload('{"teacherId": 5, "id": 5}', Population.STUDENT)


def test_own_badge_resolves_while_other_population_badge_does_not():
    roster = InMemoryRoster()
    roster.add(Population.STUDENT, 7, "Some Student")
    roster.add(Population.TEACHER, 7, "Mr. Okello")

    assert resolve_code(badge_payload(Population.STUDENT, 7), Population.STUDENT, roster).full_name == "Some Student"
    with pytest.raises(MalformedPayload):
        resolve_code(badge_payload(Population.TEACHER, 7), Population.STUDENT, roster)
