from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional, Protocol

from ..policy.model import Location

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    def current_location(self, timeout: float) -> Optional[Location]:
        """One-shot position fix; None when unavailable or denied."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class FixedLocationProvider(LocationProvider):
    """A wall-mounted kiosk whose coordinates are configured once."""

    def __init__(self, location: Optional[Location]):
        self._location = location

    def current_location(self, timeout: float) -> Optional[Location]:
        return self._location

    def close(self) -> None:
        pass


class TimedLocationProvider(LocationProvider):
    """Wrap a blocking position query (GPS dongle, OS service) with a timeout."""

    def __init__(self, query: Callable[[], Optional[Location]]):
        self._query = query
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="location")

    def current_location(self, timeout: float) -> Optional[Location]:
        future = self._executor.submit(self._query)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning("Location query timed out after %.1fs", timeout)
            return None
        except Exception:
            logger.exception("Location query failed")
            return None

    def close(self) -> None:
        self._executor.shutdown(wait=False)
