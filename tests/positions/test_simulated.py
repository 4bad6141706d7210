"""Tests for the SimPy-driven simulated position source."""

import random

import pytest

from trip_engine.geo.distance import GeoPosition, distance_between
from trip_engine.positions import PositionStatus, SimulatedPositionSource

ORIGIN = GeoPosition(lat=12.9716, lng=77.5946)


@pytest.fixture
def source(simpy_env):
    return SimulatedPositionSource(
        env=simpy_env,
        origin=ORIGIN,
        interval_seconds=2.0,
        max_step_km=0.1,
        rng=random.Random(7),
    )


@pytest.fixture
def updates():
    return []


@pytest.mark.unit
class TestSimulatedPositionSource:
    def test_reports_simulated_status_on_subscribe(self, source, updates):
        source.subscribe(updates.append)

        assert len(updates) == 1
        assert updates[0].status == PositionStatus.SIMULATED
        assert updates[0].position is None
        assert source.status == PositionStatus.SIMULATED

    def test_emits_every_interval(self, simpy_env, source, updates):
        source.subscribe(updates.append)
        simpy_env.run(until=10.5)

        samples = [u for u in updates if u.position is not None]
        assert len(samples) == 5

    def test_steps_are_bounded(self, simpy_env, source, updates):
        source.subscribe(updates.append)
        simpy_env.run(until=60.5)

        previous = ORIGIN
        for update in updates[1:]:
            assert distance_between(previous, update.position) <= 0.1 + 1e-9
            previous = update.position
        assert source.current_position == previous

    def test_nothing_before_subscribe(self, simpy_env, source, updates):
        simpy_env.run(until=10)
        source.subscribe(updates.append)

        assert len(updates) == 1
        assert source.current_position == ORIGIN

    def test_cancel_stops_samples(self, simpy_env, source, updates):
        source.subscribe(updates.append)
        simpy_env.run(until=4.5)
        count = len(updates)

        source.cancel()
        simpy_env.run(until=20)

        assert len(updates) == count
        assert source.active is False

    def test_resubscribe_replaces_listener(self, simpy_env, source):
        first, second = [], []
        source.subscribe(first.append)
        simpy_env.run(until=2.5)
        source.subscribe(second.append)
        simpy_env.run(until=4.5)

        assert len(first) == 2
        assert len(second) == 2

    def test_seeded_route_is_reproducible(self, simpy_env):
        import simpy

        def route(env):
            src = SimulatedPositionSource(env, ORIGIN, rng=random.Random(99))
            seen = []
            src.subscribe(seen.append)
            env.run(until=20.5)
            return [u.position for u in seen if u.position is not None]

        assert route(simpy.Environment()) == route(simpy.Environment())

    def test_invalid_parameters_rejected(self, simpy_env):
        with pytest.raises(ValueError):
            SimulatedPositionSource(simpy_env, ORIGIN, interval_seconds=0)
        with pytest.raises(ValueError):
            SimulatedPositionSource(simpy_env, ORIGIN, max_step_km=0)
