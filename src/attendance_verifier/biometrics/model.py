from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..core.enums import Population


@dataclass(frozen=True)
class EnrolledTemplate:
    """A stored face descriptor for one person (one pose/capture)."""

    person_id: int
    population: Population
    descriptor: Tuple[float, ...] = field(repr=False)
    template_id: Optional[int] = None

    @classmethod
    def of(cls, person_id: int, population: Population, descriptor, template_id: Optional[int] = None) -> "EnrolledTemplate":
        return cls(
            person_id=int(person_id),
            population=Population(population),
            descriptor=tuple(float(v) for v in descriptor),
            template_id=template_id,
        )


@dataclass(frozen=True)
class MatchResult:
    person_id: int
    confidence: float
    distance: float


@dataclass(frozen=True)
class NoMatchResult:
    """No template cleared the threshold.

    `best_confidence` is the best score seen, or None when no template was
    comparable at all (empty population, every descriptor malformed).
    """

    best_confidence: Optional[float] = None
