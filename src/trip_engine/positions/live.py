"""Device positioning wrapped as a PositionSource."""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from trip_engine.core.exceptions import InvalidPosition
from trip_engine.geo.distance import GeoPosition

from .base import PositionSource, PositionStatus, PositionUpdate

logger = logging.getLogger(__name__)

FixCallback = Callable[[Any, Any], None]
ErrorCallback = Callable[[str], None]


class PositionProvider(Protocol):
    """Device capability delivering raw latitude/longitude fixes."""

    def watch_position(self, on_fix: FixCallback, on_error: ErrorCallback) -> Any:
        """Start watching; returns a handle for clear_watch."""
        ...

    def clear_watch(self, handle: Any) -> None: ...


class LivePositionSource(PositionSource):
    """Streams fixes from a device provider.

    Reports ``searching`` until the first fix, ``locked`` afterwards. A
    provider error reports ``error`` and stops the stream until
    ``restart()`` or a new ``subscribe()``.
    """

    mode = "live"

    def __init__(self, provider: PositionProvider):
        super().__init__()
        self._provider = provider
        self._watch_handle: Any = None

    def _start(self, generation: int) -> None:
        self._deliver(generation, PositionUpdate(status=PositionStatus.SEARCHING))
        try:
            self._watch_handle = self._provider.watch_position(
                lambda lat, lng: self._on_fix(generation, lat, lng),
                lambda message: self._on_error(generation, message),
            )
        except Exception as e:
            logger.error(f"Failed to start position watch: {e}")
            self._deliver(generation, PositionUpdate(status=PositionStatus.ERROR, error=str(e)))
            self._halt()

    def _stop(self) -> None:
        if self._watch_handle is None:
            return
        handle = self._watch_handle
        self._watch_handle = None
        try:
            self._provider.clear_watch(handle)
        except Exception as e:
            logger.warning(f"Failed to clear position watch: {e}")

    def _on_fix(self, generation: int, lat: Any, lng: Any) -> None:
        try:
            position = GeoPosition.parse(lat, lng)
        except InvalidPosition as e:
            logger.warning(f"Discarding invalid position fix: {e.message}")
            return
        self._deliver(generation, PositionUpdate(position=position, status=PositionStatus.LOCKED))

    def _on_error(self, generation: int, message: str) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            logger.error(f"Positioning error: {message}")
            self._deliver(generation, PositionUpdate(status=PositionStatus.ERROR, error=message))
            self._halt()
