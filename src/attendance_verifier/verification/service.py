from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Tuple

from ..biometrics.matcher import IdentityMatcher
from ..biometrics.model import NoMatchResult
from ..biometrics.repository import TemplateRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LOCATION_TIMEOUT_SECONDS
from ..core.enums import Direction, Population, RejectionReason, VerificationMethod
from ..core.exceptions import (
    AlreadyRecorded,
    LowConfidence,
    NoMatch,
    NotCheckedIn,
    PersonNotFound,
    VerificationError,
)
from ..ledger.model import AttendanceOutcome, CommitResult
from ..ledger.repository import AttendanceLedger
from ..policy.evaluator import PolicyEvaluator
from ..policy.model import AttendancePolicy, Location
from ..policy.repository import SettingsRepository
from ..roster.model import PersonRecord
from ..roster.payload import resolve_code
from ..roster.repository import RosterRepository
from .location import LocationProvider
from .model import Accepted, BiometricProbe, CodeProbe, OutcomeEvent, Probe, Rejected

logger = logging.getLogger(__name__)


class VerificationService:
    """One verification attempt: probe -> identity -> policy -> ledger.

    Rosters, templates and settings are read fresh for every attempt; nothing
    is cached between attempts.
    """

    def __init__(
        self,
        roster: RosterRepository,
        templates: TemplateRepository,
        settings: SettingsRepository,
        ledger: AttendanceLedger,
        *,
        matcher: IdentityMatcher | None = None,
        evaluator: PolicyEvaluator | None = None,
        location_provider: LocationProvider | None = None,
        location_timeout: float = DEFAULT_LOCATION_TIMEOUT_SECONDS,
        require_check_in_before_check_out: bool = True,
    ):
        self._roster = roster
        self._templates = templates
        self._settings = settings
        self._ledger = ledger
        self._matcher = matcher or IdentityMatcher()
        self._evaluator = evaluator or PolicyEvaluator()
        self._location_provider = location_provider
        self._location_timeout = float(location_timeout)
        self._require_check_in = require_check_in_before_check_out

    def verify(
        self,
        probe: Probe,
        *,
        population: Population,
        direction: Optional[Direction] = None,
        now: Optional[datetime] = None,
        location: Optional[Location] = None,
    ) -> OutcomeEvent:
        """Run one attempt and report it as an event; never raises.

        Per-attempt failures become `Rejected` with their reason code. Anything
        unexpected (backend down, driver bug) is logged with a traceback and
        reported as INTERNAL_ERROR so the scanning loop keeps running.
        """
        now = now or now_local()
        try:
            return self.resolve(probe, population=population, direction=direction, now=now, location=location)
        except VerificationError as e:
            rejected = Rejected(
                reason=e.reason,
                message=str(e),
                at=now,
                method=probe.method,
                person_hint=e.person_hint,
                distance_meters=e.distance_meters,
            )
        except Exception:
            logger.exception("Unexpected error while verifying %s %s probe", population.value, probe.method.value)
            rejected = Rejected(
                reason=RejectionReason.INTERNAL_ERROR,
                message="System error while recording attendance",
                at=now,
                method=probe.method,
            )

        logger.warning(
            "Rejected %s %s attempt at %s: reason=%s person=%s detail=%s",
            population.value,
            probe.method.value,
            now.isoformat(timespec="seconds"),
            rejected.reason.value,
            rejected.person_hint,
            rejected.message,
        )
        return rejected

    def resolve(
        self,
        probe: Probe,
        *,
        population: Population,
        direction: Optional[Direction] = None,
        now: Optional[datetime] = None,
        location: Optional[Location] = None,
    ) -> Accepted:
        now = now or now_local()
        today = now.date()
        population = Population(population)
        snapshot = self._settings.get_snapshot()
        policy, geofence = snapshot.policy, snapshot.geofence

        if probe.method == VerificationMethod.BIOMETRIC:
            # Skip loading templates when face recognition is switched off.
            self._evaluator.check_method(policy, population, probe.method)
        person, confidence = self._identify(probe, population, policy)

        try:
            direction = direction or self._detect_direction(population, person.person_id, today)
            if direction == Direction.CHECK_OUT and self._require_check_in:
                if not self._checked_in(population, person.person_id, today):
                    raise NotCheckedIn(f"{person.full_name} has not checked in today")

            if location is None and self._evaluator.geofence_applies(direction, population, geofence):
                location = self._locate()

            decision = self._evaluator.evaluate(
                direction,
                now,
                policy,
                population=population,
                method=probe.method,
                geofence=geofence,
                location=location,
            )

            if self._ledger.has_record(population, person.person_id, today, direction):
                raise AlreadyRecorded(f"{person.full_name} already has a {direction.value} for {today.isoformat()}")

            outcome = AttendanceOutcome(
                person_id=person.person_id,
                population=population,
                work_date=today,
                direction=direction,
                timestamp=now,
                status=decision.status,
                method=probe.method,
                confidence=confidence,
                distance_meters=decision.distance_meters,
                location=location,
                note=decision.note,
            )
            if self._ledger.commit(outcome) == CommitResult.CONFLICT:
                raise AlreadyRecorded(f"{person.full_name} was recorded by another kiosk for {today.isoformat()}")
        except VerificationError as e:
            if e.person_hint is None:
                e.person_hint = person.person_id
            raise

        logger.info(
            "Accepted %s %s (%s) %s at %s via %s: %s",
            population.value,
            person.person_id,
            person.full_name,
            direction.value,
            now.isoformat(timespec="seconds"),
            probe.method.value,
            outcome.status.value,
        )
        return Accepted(outcome=outcome, person=person)

    def mark_absent(
        self,
        population: Population,
        work_date: Optional[date] = None,
        *,
        now: Optional[datetime] = None,
    ) -> int:
        """Record `absent` for every active member of `population` with no record on `work_date`.

        Meant to run once the gate has closed. A person swept as absent who
        turns up later is told their check-in is already recorded.
        """
        now = now or now_local()
        population = Population(population)
        work_date = work_date or now.date()
        marked = self._ledger.mark_absent(population, work_date, now)
        logger.info("Absent sweep for %s on %s marked %s", population.value, work_date.isoformat(), marked)
        return marked

    def _identify(
        self,
        probe: Probe,
        population: Population,
        policy: AttendancePolicy,
    ) -> Tuple[PersonRecord, Optional[float]]:
        if isinstance(probe, CodeProbe):
            return resolve_code(probe.payload, population, self._roster), None

        if not isinstance(probe, BiometricProbe):
            raise TypeError(f"Unsupported probe type: {type(probe)!r}")

        templates = self._templates.list_for(population)
        result = self._matcher.match(
            probe.descriptor,
            templates,
            population=population,
            threshold=policy.confidence_threshold,
        )
        if isinstance(result, NoMatchResult):
            if result.best_confidence is None:
                raise NoMatch(f"No enrolled {population.value} face to compare against")
            raise LowConfidence(
                f"Best match confidence {result.best_confidence:.2f} is below {policy.confidence_threshold:.2f}"
            )

        person = self._roster.get_person(population, result.person_id)
        if person is None:
            raise PersonNotFound(
                f"Matched {population.value} {result.person_id} is not on the active roster",
                person_hint=result.person_id,
            )
        return person, result.confidence

    def _checked_in(self, population: Population, person_id: int, today: date) -> bool:
        # An absent mark occupies the check-in slot but is not a check-in.
        if not self._ledger.has_record(population, person_id, today, Direction.CHECK_IN):
            return False
        return not self._ledger.is_marked_absent(population, person_id, today)

    def _detect_direction(self, population: Population, person_id: int, today: date) -> Direction:
        # Checked in but not yet out -> this scan is the check-out.
        if self._checked_in(population, person_id, today) and not self._ledger.has_record(
            population, person_id, today, Direction.CHECK_OUT
        ):
            return Direction.CHECK_OUT
        return Direction.CHECK_IN

    def _locate(self) -> Optional[Location]:
        if self._location_provider is None:
            return None
        return self._location_provider.current_location(self._location_timeout)
