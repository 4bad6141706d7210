"""Trip record and lifecycle phases."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from trip_engine.core.exceptions import StateError
from trip_engine.geo.accumulator import DISPLAY_PRECISION


class TripPhase(str, Enum):
    """Phases of the trip state machine.

    Only ``ongoing`` and ``completed`` are ever stored on a Trip record;
    the others exist while no trip (or no verified trip) is held.
    """

    IDLE = "idle"
    PICKUP = "pickup"
    ONGOING = "ongoing"
    DROP = "drop"
    COMPLETED = "completed"


VALID_TRANSITIONS: dict[TripPhase, set[TripPhase]] = {
    TripPhase.IDLE: {TripPhase.PICKUP},
    TripPhase.PICKUP: {TripPhase.ONGOING, TripPhase.IDLE},
    TripPhase.ONGOING: {TripPhase.DROP},
    TripPhase.DROP: {TripPhase.COMPLETED, TripPhase.ONGOING},
    TripPhase.COMPLETED: {TripPhase.IDLE},
}


class TripStatus(str, Enum):
    """Status persisted on the trip record."""

    ONGOING = "ongoing"
    COMPLETED = "completed"


class Trip(BaseModel):
    """A rider's trip from verified pickup to verified drop."""

    trip_id: str
    status: TripStatus = Field(default=TripStatus.ONGOING)
    pickup_location: str
    drop_location: str | None = None
    pickup_time: datetime
    drop_time: datetime | None = None
    distance_km: float = Field(default=0.0, ge=0)
    estimated_fare: int = Field(default=0, ge=0)
    actual_fare: int | None = Field(default=None, ge=0)
    pickup_verified: bool = True
    drop_verified: bool = False

    @model_validator(mode="after")
    def check_completion_fields(self) -> "Trip":
        completed = self.status == TripStatus.COMPLETED
        if completed != (self.actual_fare is not None):
            raise ValueError("actual_fare must be set if and only if the trip is completed")
        if not completed and self.drop_time is not None:
            raise ValueError("drop_time must be absent while the trip is ongoing")
        return self

    @property
    def display_distance_km(self) -> float:
        return round(self.distance_km, DISPLAY_PRECISION)

    @property
    def is_completed(self) -> bool:
        return self.status == TripStatus.COMPLETED

    def update_progress(self, distance_km: float, estimated_fare: int) -> None:
        """Apply a new running distance total and the fare derived from it."""
        if self.is_completed:
            raise StateError(
                f"Trip {self.trip_id} is completed; distance is frozen",
                details={"trip_id": self.trip_id},
            )
        if distance_km < self.distance_km:
            raise ValueError(
                f"Distance cannot decrease ({self.distance_km} -> {distance_km})"
            )
        if estimated_fare < 0:
            raise ValueError("Fare must be non-negative")

        self.distance_km = distance_km
        self.estimated_fare = estimated_fare

    def complete(self, drop_location: str, drop_time: datetime) -> None:
        """Finalize the trip, fixing the charged fare at the current estimate."""
        if self.is_completed:
            raise StateError(
                f"Trip {self.trip_id} is already completed",
                details={"trip_id": self.trip_id},
            )

        self.drop_location = drop_location
        self.drop_time = drop_time
        self.drop_verified = True
        self.actual_fare = self.estimated_fare
        self.status = TripStatus.COMPLETED
