"""Position source capability shared by live and simulated implementations."""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel

from trip_engine.geo.distance import GeoPosition

logger = logging.getLogger(__name__)


class PositionStatus(str, Enum):
    """Signal quality reported alongside samples."""

    SEARCHING = "searching"
    LOCKED = "locked"
    ERROR = "error"
    SIMULATED = "simulated"


class PositionUpdate(BaseModel):
    """One item of a position stream: a sample, a status change, or both."""

    position: GeoPosition | None = None
    status: PositionStatus
    error: str | None = None


PositionListener = Callable[[PositionUpdate], None]


class PositionSource(ABC):
    """Produces position updates for a single subscriber until cancelled.

    Delivery and cancellation share one re-entrant lock: once ``cancel()``
    returns, any in-flight delivery has finished and no further update
    reaches the listener. Callers must therefore not hold a lock the
    listener needs while calling ``cancel()``.
    """

    mode: str = "unknown"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._listener: PositionListener | None = None
        self._active = False
        self._generation = 0
        self._status: PositionStatus | None = None

    @property
    def status(self) -> PositionStatus | None:
        return self._status

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, listener: PositionListener) -> None:
        """Start producing updates for listener, replacing any previous subscriber."""
        with self._lock:
            if self._active:
                self._stop()
            self._listener = listener
            self._active = True
            self._generation += 1
            generation = self._generation
            logger.debug(f"{self.mode} position source subscribed (generation {generation})")
            self._start(generation)

    def restart(self) -> None:
        """Resume producing for the last listener after an error stopped the stream."""
        with self._lock:
            if self._listener is None:
                return
            listener = self._listener
        self.subscribe(listener)

    def cancel(self) -> None:
        """Stop producing; no update is delivered after this returns."""
        with self._lock:
            if not self._active and self._listener is None:
                return
            was_active = self._active
            self._active = False
            self._listener = None
            self._generation += 1
            if was_active:
                self._stop()
            logger.debug(f"{self.mode} position source cancelled")

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _deliver(self, generation: int, update: PositionUpdate) -> bool:
        with self._lock:
            if not self._is_current(generation) or self._listener is None:
                return False
            self._status = update.status
            self._listener(update)
            return True

    def _halt(self) -> None:
        """Stop producing but keep the listener so restart() can resume."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            self._generation += 1
            self._stop()

    @abstractmethod
    def _start(self, generation: int) -> None:
        """Begin producing updates tagged with generation."""

    @abstractmethod
    def _stop(self) -> None:
        """Release whatever _start acquired."""
