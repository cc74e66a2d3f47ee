from __future__ import annotations

import math
from datetime import date
from typing import Optional

from ..core.enums import Direction, Population
from ..core.exceptions import ValidationError


def require_population(value: str) -> Population:
    try:
        return Population((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown population: {value!r}") from None


def optional_direction(value: Optional[str]) -> Optional[Direction]:
    """Parse a direction; empty means auto-detect."""
    if value is None or not value.strip():
        return None
    normalized = value.strip().lower().replace("-", "_")
    try:
        return Direction(normalized)
    except ValueError:
        raise ValidationError(f"Unknown direction: {value!r}") from None


def optional_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD date; empty means today."""
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD") from None


def require_positive(value: float, field_name: str) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{field_name} must be a positive number")
    return value


def require_unit_interval(value: float, field_name: str) -> float:
    if value is None or not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise ValidationError(f"{field_name} must be between 0.0 and 1.0")
    return value
