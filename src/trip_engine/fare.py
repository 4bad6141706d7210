import math

from pydantic import BaseModel, Field

from trip_engine.settings import FareSettings


class FareBreakdown(BaseModel):
    """Detailed breakdown of fare components."""

    distance_km: float = Field(ge=0)
    distance_charge: int = Field(ge=0)
    minimum_fare: int = Field(ge=0)
    minimum_applied: bool
    total_fare: int = Field(ge=0)


class FarePolicy:
    """Maps accumulated trip distance to a whole-unit fare."""

    MINIMUM_FARE = 5
    PER_KM_RATE = 2

    def __init__(self, minimum_fare: int = MINIMUM_FARE, per_km_rate: int = PER_KM_RATE):
        if minimum_fare < 0:
            raise ValueError("Minimum fare must be non-negative")
        if per_km_rate < 0:
            raise ValueError("Per-km rate must be non-negative")
        self.minimum_fare = minimum_fare
        self.per_km_rate = per_km_rate

    @classmethod
    def from_settings(cls, settings: FareSettings) -> "FarePolicy":
        return cls(minimum_fare=settings.minimum_fare, per_km_rate=settings.per_km_rate)

    def fare(self, distance_km: float) -> int:
        """
        Calculate fare for the total distance travelled so far.

        Always derived from the full total rather than accumulated per sample,
        so recomputing for the same distance gives the same fare.
        """
        return self.breakdown(distance_km).total_fare

    def breakdown(self, distance_km: float) -> FareBreakdown:
        if distance_km < 0:
            raise ValueError("Distance must be non-negative")

        distance_charge = math.ceil(distance_km * self.per_km_rate)
        total_fare = max(self.minimum_fare, distance_charge)

        return FareBreakdown(
            distance_km=distance_km,
            distance_charge=distance_charge,
            minimum_fare=self.minimum_fare,
            minimum_applied=distance_charge < self.minimum_fare,
            total_fare=total_fare,
        )
