from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Population
from .model import PersonRecord


class RosterRepository(Protocol):
    """Read-only roster lookup used to resolve scanned identities."""

    def get_person(self, population: Population, person_id: int) -> Optional[PersonRecord]:
        raise NotImplementedError
