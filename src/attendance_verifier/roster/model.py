from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Population


@dataclass(frozen=True)
class PersonRecord:
    """Domain entity: a student or teacher as seen by the kiosk.

    Owned by the roster service; the engine only reads snapshots.
    """

    person_id: int
    full_name: str
    population: Population
