from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_BIOMETRIC_COOLDOWN_SECONDS, DEFAULT_CODE_COOLDOWN_SECONDS
from ..core.enums import Direction, Population, SessionState, VerificationMethod
from ..core.exceptions import CameraUnavailable, ValidationError
from .model import Accepted, OutcomeEvent, Probe
from .service import VerificationService

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def open(self) -> None:
        """Acquire the device; raise CameraUnavailable on failure."""
        raise NotImplementedError

    def read(self) -> Optional[Any]:
        """Most recent frame, or None when nothing new is available."""
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class Decoder(Protocol):
    def decode(self, frame: Any) -> Optional[Probe]:
        raise NotImplementedError


class VerificationSession:
    """Cooperative scanning loop for one kiosk.

    Idle -> Scanning -> Resolving -> (Accepted | Rejected) -> Cooldown -> Scanning,
    with Stopped as the terminal state. Each `tick()` handles the most recent
    frame; stale frames are never queued. Resolving runs synchronously, ledger
    I/O included, so no frame is decoded while an attempt is outstanding.

    The session owns its frame source and releases it on every exit path.
    """

    def __init__(
        self,
        service: VerificationService,
        source: FrameSource,
        decoder: Decoder,
        *,
        population: Population,
        on_outcome: Callable[[OutcomeEvent], None],
        direction: Optional[Direction] = None,
        code_cooldown_seconds: float = DEFAULT_CODE_COOLDOWN_SECONDS,
        biometric_cooldown_seconds: float = DEFAULT_BIOMETRIC_COOLDOWN_SECONDS,
        poll_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = now_local,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._service = service
        self._source = source
        self._decoder = decoder
        self._population = Population(population)
        self._direction = direction
        self._on_outcome = on_outcome
        self._cooldowns = {
            VerificationMethod.CODE: float(code_cooldown_seconds),
            VerificationMethod.BIOMETRIC: float(biometric_cooldown_seconds),
        }
        self._poll_interval = float(poll_interval)
        self._clock = clock
        self._now = now
        self._sleep = sleep

        self._state = SessionState.IDLE
        self._cooldown_until = 0.0
        self._stop_requested = threading.Event()
        self._tick_lock = threading.Lock()
        self._released = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def population(self) -> Population:
        return self._population

    def _set_state(self, state: SessionState) -> None:
        if self._state == SessionState.STOPPED:
            return
        logger.debug("Session %s: %s -> %s", self._population.value, self._state.value, state.value)
        self._state = state

    def start(self) -> None:
        if self._state != SessionState.IDLE:
            raise ValidationError(f"Cannot start a session in state {self._state.value}")
        try:
            self._source.open()
        except CameraUnavailable:
            logger.error("Camera unavailable, %s session not started", self._population.value)
            raise
        except Exception as e:
            logger.error("Camera unavailable, %s session not started: %s", self._population.value, e)
            raise CameraUnavailable(str(e)) from e
        self._set_state(SessionState.SCANNING)
        logger.info("Scanning session started for %s", self._population.value)

    def stop(self) -> None:
        """Terminal. Safe to call from another thread or more than once.

        An attempt already resolving is allowed to finish (its ledger commit is
        kept) but its event is not delivered.
        """
        self._stop_requested.set()
        self._state = SessionState.STOPPED
        # If a tick is in flight it releases the source when it unwinds.
        if self._tick_lock.acquire(blocking=False):
            try:
                self._release()
            finally:
                self._tick_lock.release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._source.release()
        finally:
            logger.info("Scanning session stopped for %s, camera released", self._population.value)

    def tick(self) -> Optional[OutcomeEvent]:
        """Process one frame. Returns the event emitted by this tick, if any."""
        if self._stop_requested.is_set():
            return None
        with self._tick_lock:
            try:
                return self._tick()
            finally:
                if self._stop_requested.is_set():
                    self._release()

    def _tick(self) -> Optional[OutcomeEvent]:
        if self._state == SessionState.IDLE:
            raise ValidationError("Session has not been started")

        frame = self._source.read()

        if self._state == SessionState.COOLDOWN:
            if self._clock() < self._cooldown_until:
                return None
            self._set_state(SessionState.SCANNING)

        if frame is None or self._stop_requested.is_set():
            return None

        try:
            probe = self._decoder.decode(frame)
        except Exception:
            logger.exception("Decoder failed on a frame, skipping it")
            return None
        if probe is None or self._stop_requested.is_set():
            return None

        self._set_state(SessionState.RESOLVING)
        event = self._service.verify(
            probe,
            population=self._population,
            direction=self._direction,
            now=self._now(),
        )
        self._set_state(SessionState.ACCEPTED if isinstance(event, Accepted) else SessionState.REJECTED)

        self._cooldown_until = self._clock() + self._cooldowns[probe.method]
        self._set_state(SessionState.COOLDOWN)

        if self._stop_requested.is_set():
            return None
        self._emit(event)
        return event

    def _emit(self, event: OutcomeEvent) -> None:
        try:
            self._on_outcome(event)
        except Exception:
            logger.exception("Outcome handler raised; scanning continues")

    def run(self) -> None:
        """Tick until stopped, yielding between frames."""
        if self._state == SessionState.IDLE:
            self.start()
        try:
            while not self._stop_requested.is_set():
                self.tick()
                self._sleep(self._poll_interval)
        finally:
            self.stop()

    def __enter__(self) -> "VerificationSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
