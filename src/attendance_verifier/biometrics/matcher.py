from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

import numpy as np

from ..common.distance import distance_to_confidence, euclidean_distance
from ..core.constants import DEFAULT_CONFIDENCE_THRESHOLD, DEFAULT_MAX_DESCRIPTOR_DISTANCE
from ..core.enums import Population
from ..core.exceptions import DimensionMismatch
from .model import EnrolledTemplate, MatchResult, NoMatchResult

logger = logging.getLogger(__name__)


class IdentityMatcher:
    """Nearest-neighbour search over the enrolled templates of one population."""

    def __init__(self, *, max_distance: float = DEFAULT_MAX_DESCRIPTOR_DISTANCE):
        self._max_distance = float(max_distance)

    @property
    def max_distance(self) -> float:
        return self._max_distance

    def match(
        self,
        descriptor,
        templates: Sequence[EnrolledTemplate],
        *,
        population: Population,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> Union[MatchResult, NoMatchResult]:
        if not templates:
            return NoMatchResult()

        probe = np.asarray(descriptor, dtype=np.float64).ravel()
        best: Optional[MatchResult] = None
        best_confidence: Optional[float] = None

        for template in templates:
            # Never let another population's templates leak into this pass.
            if template.population != population:
                continue

            try:
                distance = euclidean_distance(probe, template.descriptor)
            except DimensionMismatch:
                logger.warning(
                    "Skipping %s template of person %s: descriptor length %d, probe length %d",
                    template.population.value,
                    template.person_id,
                    len(template.descriptor),
                    probe.size,
                )
                continue

            confidence = distance_to_confidence(distance, self._max_distance)
            if best_confidence is None or confidence > best_confidence:
                best_confidence = confidence
            if confidence < threshold:
                continue

            if (
                best is None
                or distance < best.distance
                or (distance == best.distance and template.person_id < best.person_id)
            ):
                best = MatchResult(person_id=template.person_id, confidence=confidence, distance=distance)

        if best is None:
            return NoMatchResult(best_confidence=best_confidence)

        logger.debug(
            "Matched %s %s (confidence=%.3f, distance=%.3f)",
            population.value,
            best.person_id,
            best.confidence,
            best.distance,
        )
        return best
