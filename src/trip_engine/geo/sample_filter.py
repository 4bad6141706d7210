"""Noise filter for raw position samples."""

from dataclasses import dataclass

from .distance import GeoPosition, distance_between

DEFAULT_NOISE_THRESHOLD_KM = 0.005


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of evaluating one sample against the reference position.

    The reference position always moves to the new sample; only
    ``accepted`` decides whether ``delta_km`` contributes to distance.
    """

    delta_km: float
    accepted: bool


class GeoSampleFilter:
    """Rejects samples that moved less than the noise threshold."""

    def __init__(self, threshold_km: float = DEFAULT_NOISE_THRESHOLD_KM):
        if threshold_km < 0:
            raise ValueError("Noise threshold must be non-negative")
        self.threshold_km = threshold_km

    def evaluate(self, previous: GeoPosition | None, current: GeoPosition) -> FilterDecision:
        if previous is None:
            return FilterDecision(delta_km=0.0, accepted=False)

        delta = distance_between(previous, current)
        return FilterDecision(delta_km=delta, accepted=delta >= self.threshold_km)
