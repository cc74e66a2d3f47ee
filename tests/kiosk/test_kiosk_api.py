from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pytest

from attendance_verifier.container import Container, KioskSettings
from attendance_verifier.core.enums import Direction, Population
from attendance_verifier.ledger.model import AttendanceOutcome, CommitResult
from attendance_verifier.main import create_app
from attendance_verifier.policy.model import AttendancePolicy, GeofenceContext, SettingsSnapshot
from attendance_verifier.roster.model import PersonRecord
from attendance_verifier.verification.service import VerificationService


@dataclass
class InMemoryRoster:
    people: dict[tuple[Population, int], PersonRecord] = field(default_factory=dict)

    def get_person(self, population: Population, person_id: int) -> Optional[PersonRecord]:
        return self.people.get((population, person_id))


class NoTemplates:
    def list_for(self, population: Population):
        return []


@dataclass
class InMemorySettings:
    policy: AttendancePolicy = field(default_factory=AttendancePolicy)
    geofence: Optional[GeofenceContext] = None
    reads: int = 0

    def get_snapshot(self) -> SettingsSnapshot:
        self.reads += 1
        return SettingsSnapshot(policy=self.policy, geofence=self.geofence)


@dataclass
class InMemoryLedger:
    records: dict[tuple[Population, int, date, Direction], AttendanceOutcome] = field(default_factory=dict)
    sweeps: list[tuple[Population, date]] = field(default_factory=list)

    def has_record(self, population, person_id, work_date, direction) -> bool:
        return (population, person_id, work_date, direction) in self.records

    def is_marked_absent(self, population, person_id, work_date) -> bool:
        return False

    def commit(self, outcome: AttendanceOutcome) -> CommitResult:
        self.records[(outcome.population, outcome.person_id, outcome.work_date, outcome.direction)] = outcome
        return CommitResult.ACK

    def mark_absent(self, population, work_date, recorded_at) -> int:
        self.sweeps.append((population, work_date))
        return 3


@pytest.fixture()
def ledger():
    return InMemoryLedger()


@pytest.fixture()
def client(monkeypatch, ledger):
    monkeypatch.setenv("APP_ENV", "testing")

    roster = InMemoryRoster()
    roster.people[(Population.STUDENT, 42)] = PersonRecord(42, "Amina Nakato", Population.STUDENT)
    service = VerificationService(roster, NoTemplates(), InMemorySettings(), ledger)
    container = Container(
        kiosk=KioskSettings(),
        verification_service=service,
        roster_repo=roster,
        ledger=ledger,
    )

    app = create_app(container=container)
    return app.test_client()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_scan_with_payload_records_check_in(client, ledger):
    resp = client.post("/api/kiosk/student/scan", data={"payload": '{"personId": 42}', "direction": "check-in"})

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["full_name"] == "Amina Nakato"
    assert body["direction"] == "check_in"
    assert body["method"] == "code"
    assert len(ledger.records) == 1


def test_rejection_is_400_with_reason(client):
    resp = client.post("/api/kiosk/student/scan", data={"payload": "not-json-999"})

    body = resp.get_json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert body["reason"] == "person_not_found"
    assert body["person_id"] == 999


def test_unknown_population_is_404(client):
    resp = client.post("/api/kiosk/parents/scan", data={"payload": "42"})
    assert resp.status_code == 404


def test_scan_without_image_or_payload_is_400(client):
    resp = client.post("/api/kiosk/student/scan", data={})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_scan_with_unreadable_image_is_400(client):
    data = {"image": (io.BytesIO(b"definitely not an image"), "frame.jpg")}
    resp = client.post("/api/kiosk/student/scan", data=data, content_type="multipart/form-data")
    assert resp.status_code == 400


def test_bad_coordinates_are_400(client):
    resp = client.post("/api/kiosk/student/scan", data={"payload": "42", "latitude": "north", "longitude": "1"})
    assert resp.status_code == 400


def test_badge_png(client):
    resp = client.get("/api/kiosk/student/42/badge.png")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


def test_badge_for_unknown_person_is_404(client):
    resp = client.get("/api/kiosk/student/7/badge.png")
    assert resp.status_code == 404


def test_mark_absent_for_given_date(client, ledger):
    resp = client.post("/api/kiosk/student/mark-absent", data={"date": "2025-02-03"})

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "population": "student", "marked": 3}
    assert ledger.sweeps == [(Population.STUDENT, date(2025, 2, 3))]


def test_mark_absent_with_bad_date_is_400(client, ledger):
    resp = client.post("/api/kiosk/teacher/mark-absent", data={"date": "yesterday"})

    assert resp.status_code == 400
    assert ledger.sweeps == []
