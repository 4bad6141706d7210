"""Synthetic position stream driven by a SimPy clock."""

import logging
import random
from collections.abc import Generator

import simpy

from trip_engine.geo.distance import GeoPosition, destination_point

from .base import PositionSource, PositionStatus, PositionUpdate

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 2.0
DEFAULT_MAX_STEP_KM = 0.1
# Bearing drift per sample, degrees either side
MAX_TURN_DEG = 30.0


class SimulatedPositionSource(PositionSource):
    """Random-walk positions emitted on a fixed simulated interval.

    A single ticker process is registered on the environment at
    construction; subscribing and cancelling only flip flags, so they are
    safe to call from a thread other than the one running the environment.
    """

    mode = "simulated"

    def __init__(
        self,
        env: simpy.Environment,
        origin: GeoPosition,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        max_step_km: float = DEFAULT_MAX_STEP_KM,
        rng: random.Random | None = None,
    ):
        super().__init__()
        if interval_seconds <= 0:
            raise ValueError("Interval must be positive")
        if max_step_km <= 0:
            raise ValueError("Max step must be positive")
        self._env = env
        self._origin = origin
        self._interval = interval_seconds
        self._max_step_km = max_step_km
        self._rng = rng or random.Random()
        self._position = origin
        self._bearing = self._rng.uniform(0.0, 360.0)
        self._env.process(self._ticker())

    @property
    def current_position(self) -> GeoPosition:
        return self._position

    def _start(self, generation: int) -> None:
        self._deliver(generation, PositionUpdate(status=PositionStatus.SIMULATED))

    def _stop(self) -> None:
        pass

    def _ticker(self) -> Generator[simpy.Event]:
        while True:
            yield self._env.timeout(self._interval)
            self._tick()

    def _tick(self) -> None:
        with self._lock:
            if not self._active:
                return
            step_km = self._rng.uniform(0.0, self._max_step_km)
            self._bearing = (
                self._bearing + self._rng.uniform(-MAX_TURN_DEG, MAX_TURN_DEG)
            ) % 360.0
            self._position = destination_point(self._position, self._bearing, step_km)
            self._deliver(
                self._generation,
                PositionUpdate(position=self._position, status=PositionStatus.SIMULATED),
            )
