from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import pytest

from attendance_verifier.core.enums import (
    AttendanceStatus,
    Direction,
    Population,
    RejectionReason,
    SessionState,
    VerificationMethod,
)
from attendance_verifier.core.exceptions import CameraUnavailable, ValidationError
from attendance_verifier.ledger.model import AttendanceOutcome
from attendance_verifier.roster.model import PersonRecord
from attendance_verifier.verification.model import Accepted, BiometricProbe, CodeProbe, Rejected
from attendance_verifier.verification.session import VerificationSession

NOW = datetime(2025, 2, 3, 8, 5)


class FakeClock:
    def __init__(self):
        self.t = 100.0

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@dataclass
class FakeSource:
    frames: list[Any] = field(default_factory=list)
    fail_open: Optional[Exception] = None
    opened: int = 0
    released: int = 0

    def open(self) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self.opened += 1

    def read(self) -> Optional[Any]:
        # A live camera always has a latest frame; repeat the last one.
        if not self.frames:
            return None
        return self.frames.pop(0) if len(self.frames) > 1 else self.frames[0]

    def release(self) -> None:
        self.released += 1


class PassThroughDecoder:
    """Frames in these tests are already probes (or None / garbage)."""

    def decode(self, frame):
        if frame == "explode":
            raise RuntimeError("corrupt frame")
        return frame


def accepted(person_id: int = 42) -> Accepted:
    person = PersonRecord(person_id, "Amina Nakato", Population.STUDENT)
    outcome = AttendanceOutcome(
        person_id=person_id,
        population=Population.STUDENT,
        work_date=NOW.date(),
        direction=Direction.CHECK_IN,
        timestamp=NOW,
        status=AttendanceStatus.PRESENT,
        method=VerificationMethod.CODE,
    )
    return Accepted(outcome=outcome, person=person)


@dataclass
class FakeService:
    result: Any = None
    calls: list[Any] = field(default_factory=list)
    on_verify: Any = None

    def verify(self, probe, *, population, direction=None, now=None, location=None):
        self.calls.append((probe, population, direction, now))
        if self.on_verify:
            self.on_verify()
        return self.result or accepted()


def make(frames=None, service=None, **kwargs):
    clock = FakeClock()
    source = FakeSource(frames=list(frames or []))
    events = []
    session = VerificationSession(
        service or FakeService(),
        source,
        PassThroughDecoder(),
        population=Population.STUDENT,
        on_outcome=events.append,
        clock=clock,
        now=lambda: NOW,
        sleep=lambda _: None,
        **kwargs,
    )
    return session, source, clock, events


def test_start_opens_camera_and_scans():
    session, source, _, _ = make()

    assert session.state == SessionState.IDLE
    session.start()

    assert session.state == SessionState.SCANNING
    assert source.opened == 1


def test_camera_failure_keeps_session_idle():
    session, source, _, _ = make()
    source.fail_open = CameraUnavailable("device 0 busy")

    with pytest.raises(CameraUnavailable):
        session.start()
    assert session.state == SessionState.IDLE


def test_unexpected_open_error_is_reported_as_camera_unavailable():
    session, source, _, _ = make()
    source.fail_open = OSError("no such device")

    with pytest.raises(CameraUnavailable) as exc:
        session.start()
    assert exc.value.reason == RejectionReason.CAMERA_UNAVAILABLE


def test_start_twice_is_rejected():
    session, _, _, _ = make()
    session.start()
    with pytest.raises(ValidationError):
        session.start()


def test_one_probe_produces_exactly_one_event_then_cooldown():
    service = FakeService()
    session, _, _, events = make([CodeProbe("42")], service=service)
    session.start()

    event = session.tick()

    assert isinstance(event, Accepted)
    assert events == [event]
    assert len(service.calls) == 1
    assert service.calls[0][1] == Population.STUDENT
    assert service.calls[0][3] == NOW
    assert session.state == SessionState.COOLDOWN


def test_frames_during_code_cooldown_are_dropped():
    service = FakeService()
    session, _, clock, events = make([CodeProbe("42")], service=service)
    session.start()
    session.tick()

    clock.advance(1.9)
    assert session.tick() is None
    assert session.state == SessionState.COOLDOWN
    assert len(service.calls) == 1

    clock.advance(0.2)
    session.tick()
    assert len(service.calls) == 2
    assert len(events) == 2


def test_biometric_cooldown_is_longer():
    face = BiometricProbe.of([0.0] * 128)
    service = FakeService()
    session, _, clock, _ = make([face], service=service)
    session.start()
    session.tick()

    clock.advance(2.5)
    session.tick()
    assert len(service.calls) == 1

    clock.advance(0.5)
    session.tick()
    assert len(service.calls) == 2


def test_rejections_are_emitted_and_scanning_continues():
    rejected = Rejected(reason=RejectionReason.NO_MATCH, message="no match", at=NOW, method=VerificationMethod.CODE)
    session, _, clock, events = make([CodeProbe("x")], service=FakeService(result=rejected))
    session.start()

    session.tick()
    clock.advance(2.0)
    session.tick()

    assert events == [rejected, rejected]


def test_empty_frames_and_no_probe_do_not_resolve():
    service = FakeService()
    session, _, _, events = make([None, None, None], service=service)
    session.start()

    for _ in range(3):
        assert session.tick() is None

    assert service.calls == []
    assert events == []
    assert session.state == SessionState.SCANNING


def test_decoder_error_skips_the_frame():
    service = FakeService()
    session, _, _, _ = make(["explode", CodeProbe("42")], service=service)
    session.start()

    assert session.tick() is None
    assert session.tick() is not None
    assert len(service.calls) == 1


def test_failing_outcome_handler_does_not_stop_the_session():
    source = FakeSource(frames=[CodeProbe("42")])

    def handler(event):
        raise RuntimeError("display disconnected")

    session = VerificationSession(
        FakeService(),
        source,
        PassThroughDecoder(),
        population=Population.STUDENT,
        on_outcome=handler,
        clock=FakeClock(),
        now=lambda: NOW,
    )
    session.start()

    assert isinstance(session.tick(), Accepted)
    assert session.state == SessionState.COOLDOWN


def test_stop_releases_camera_once_and_is_terminal():
    session, source, _, _ = make([CodeProbe("42")])
    session.start()

    session.stop()
    session.stop()

    assert session.state == SessionState.STOPPED
    assert source.released == 1
    assert session.tick() is None


def test_stop_while_resolving_suppresses_the_event():
    service = FakeService()
    session, source, _, events = make([CodeProbe("42")], service=service)
    service.on_verify = session.stop
    session.start()

    assert session.tick() is None

    # The attempt itself ran to completion; only delivery is suppressed.
    assert len(service.calls) == 1
    assert events == []
    assert session.state == SessionState.STOPPED
    assert source.released == 1


def test_run_loops_until_stopped_and_releases_camera():
    service = FakeService()
    session, source, clock, events = make([None, CodeProbe("42")], service=service)
    ticks = []

    def sleep(_):
        ticks.append(1)
        clock.advance(1.0)
        if len(ticks) == 5:
            session.stop()

    session._sleep = sleep
    session.run()

    assert source.opened == 1
    assert source.released == 1
    assert session.state == SessionState.STOPPED
    # Probe at t=1, cooldown until t=3, probe again at t=3.
    assert len(events) == 2


def test_context_manager_releases_camera():
    session, source, _, _ = make()

    with session:
        assert session.state == SessionState.SCANNING

    assert source.released == 1
    assert session.state == SessionState.STOPPED
