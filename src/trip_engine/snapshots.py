"""Immutable views of the state machine handed to observers."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from trip_engine.geo.distance import GeoPosition
from trip_engine.positions.base import PositionStatus
from trip_engine.trip import Trip, TripPhase


class TripSnapshot(BaseModel):
    """Point-in-time state of the trip engine."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    timestamp: datetime
    phase: TripPhase
    trip: Trip | None = None
    position_mode: str | None = None
    gps_status: PositionStatus | None = None
    last_position: GeoPosition | None = None
    last_error: str | None = None

    @property
    def display_distance_km(self) -> float:
        return self.trip.display_distance_km if self.trip else 0.0
