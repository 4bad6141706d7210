"""Running total of travelled distance."""

DISPLAY_PRECISION = 2


class DistanceAccumulator:
    """Sums accepted distance deltas at full precision.

    Only ``display_km`` is rounded, so repeated additions never compound
    rounding error.
    """

    def __init__(self, total_km: float = 0.0):
        if total_km < 0:
            raise ValueError("Distance must be non-negative")
        self._total_km = total_km

    @property
    def total_km(self) -> float:
        return self._total_km

    @property
    def display_km(self) -> float:
        return round(self._total_km, DISPLAY_PRECISION)

    def add(self, delta_km: float) -> float:
        """Add an accepted delta and return the new total."""
        if delta_km < 0:
            raise ValueError("Distance delta must be non-negative")
        self._total_km += delta_km
        return self._total_km

    def reset(self) -> None:
        self._total_km = 0.0
