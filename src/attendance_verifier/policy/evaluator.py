from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..core.enums import Direction, GeofenceVerdict, Population, VerificationMethod
from ..core.exceptions import BiometricRequired, MethodDisabled, OutsideGeofence
from .factory import AttendanceStrategyFactory
from .geofence import check_geofence
from .model import AttendancePolicy, GeofenceContext, Location, PolicyDecision

logger = logging.getLogger(__name__)


class PolicyEvaluator:
    """Gate and classify one verified identity against school policy.

    Checks run in a fixed order: method veto, geofence (check-in only), then the
    time classification. Vetoes raise a VerificationError subclass.
    """

    def __init__(self, *, strategy_factory: AttendanceStrategyFactory | None = None):
        self._factory = strategy_factory or AttendanceStrategyFactory()

    @staticmethod
    def geofence_applies(
        direction: Direction,
        population: Population,
        geofence: Optional[GeofenceContext],
    ) -> bool:
        return direction == Direction.CHECK_IN and geofence is not None and geofence.applies_to(population)

    def check_method(self, policy: AttendancePolicy, population: Population, method: VerificationMethod) -> None:
        if method == VerificationMethod.CODE:
            if not policy.enable_code_scanning:
                raise MethodDisabled("Code scanning is disabled for this school")
            if population in policy.require_biometric_for:
                raise BiometricRequired(f"Face verification is required for {population.value}s")
        elif method == VerificationMethod.BIOMETRIC and not policy.enable_face_recognition:
            raise MethodDisabled("Face recognition is disabled for this school")

    def evaluate(
        self,
        direction: Direction,
        now: datetime,
        policy: AttendancePolicy,
        *,
        population: Population,
        method: VerificationMethod,
        geofence: Optional[GeofenceContext] = None,
        location: Optional[Location] = None,
    ) -> PolicyDecision:
        self.check_method(policy, population, method)

        verdict = GeofenceVerdict.NOT_APPLICABLE
        distance: Optional[float] = None
        if self.geofence_applies(direction, population, geofence):
            verdict, distance = check_geofence(geofence, location)
            if verdict == GeofenceVerdict.OUTSIDE:
                raise OutsideGeofence(
                    f"Outside school grounds ({distance:.0f}m away, limit {geofence.radius_meters:.0f}m)",
                    distance_meters=distance,
                )

        today = now.date()
        if direction == Direction.CHECK_IN:
            strategy = self._factory.for_check_in(now=now, today=today, policy=policy)
            decision = strategy.decide_check_in(now=now, today=today, policy=policy)
        else:
            strategy = self._factory.for_check_out(now=now, today=today, policy=policy)
            decision = strategy.decide_check_out(now=now, today=today, policy=policy)

        logger.debug(
            "%s %s via %s classified %s",
            population.value,
            direction.value,
            method.value,
            decision.status.value,
        )
        return PolicyDecision(
            status=decision.status,
            geofence_verdict=verdict,
            distance_meters=distance,
            note=decision.note,
        )
