from __future__ import annotations

from typing import Protocol, Sequence

from ..core.enums import Population
from .model import EnrolledTemplate


class TemplateRepository(Protocol):
    def list_for(self, population: Population) -> Sequence[EnrolledTemplate]:
        raise NotImplementedError
