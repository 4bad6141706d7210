"""Tests for the GPS noise filter."""

import pytest

from trip_engine.geo.distance import GeoPosition, haversine_distance_km
from trip_engine.geo.sample_filter import DEFAULT_NOISE_THRESHOLD_KM, GeoSampleFilter


@pytest.fixture
def sample_filter():
    return GeoSampleFilter()


@pytest.mark.unit
class TestGeoSampleFilter:
    def test_default_threshold_is_five_metres(self, sample_filter):
        assert sample_filter.threshold_km == DEFAULT_NOISE_THRESHOLD_KM == 0.005

    def test_no_reference_never_accrues(self, sample_filter):
        decision = sample_filter.evaluate(None, GeoPosition(lat=0.0, lng=0.0))
        assert decision.accepted is False
        assert decision.delta_km == 0.0

    def test_jitter_is_rejected(self, sample_filter):
        # ~1.1 m apart
        decision = sample_filter.evaluate(
            GeoPosition(lat=0.0, lng=0.0), GeoPosition(lat=0.0, lng=0.00001)
        )
        assert decision.accepted is False
        assert decision.delta_km == pytest.approx(haversine_distance_km(0, 0, 0, 0.00001))

    def test_movement_is_accepted(self, sample_filter):
        decision = sample_filter.evaluate(
            GeoPosition(lat=0.0, lng=0.0), GeoPosition(lat=0.0, lng=0.001)
        )
        assert decision.accepted is True
        assert decision.delta_km == pytest.approx(0.1112, rel=1e-3)

    def test_threshold_boundary_is_accepted(self):
        start = GeoPosition(lat=0.0, lng=0.0)
        end = GeoPosition(lat=0.0, lng=0.01)
        exact = haversine_distance_km(0, 0, 0, 0.01)

        assert GeoSampleFilter(threshold_km=exact).evaluate(start, end).accepted is True
        assert GeoSampleFilter(threshold_km=exact * 1.0001).evaluate(start, end).accepted is False

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            GeoSampleFilter(threshold_km=-0.001)
