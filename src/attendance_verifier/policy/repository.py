from __future__ import annotations

from typing import Protocol

from .model import SettingsSnapshot


class SettingsRepository(Protocol):
    """Per-school attendance settings. Implementations must not cache."""

    def get_snapshot(self) -> SettingsSnapshot:
        """Policy and geofence as of one read; called once per attempt."""
        raise NotImplementedError
