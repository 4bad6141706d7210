from datetime import UTC, datetime, timedelta

import pytest
import simpy

from tests.factories import AccountFactory
from trip_engine.geo.distance import GeoPosition
from trip_engine.positions.base import PositionSource, PositionStatus, PositionUpdate
from trip_engine.verification import SimulatedVerificationGate


class FakeClock:
    """Deterministic clock; advances only when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 15, 9, 30, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ManualPositionSource(PositionSource):
    """Position source driven directly by the test."""

    mode = "manual"

    def __init__(self, initial_status: PositionStatus = PositionStatus.LOCKED):
        super().__init__()
        self.initial_status = initial_status
        self.start_count = 0
        self.stop_count = 0

    def _start(self, generation: int) -> None:
        self.start_count += 1
        self._deliver(generation, PositionUpdate(status=self.initial_status))

    def _stop(self) -> None:
        self.stop_count += 1

    def emit(self, lat: float, lng: float) -> bool:
        return self._deliver(
            self._generation,
            PositionUpdate(position=GeoPosition(lat=lat, lng=lng), status=PositionStatus.LOCKED),
        )

    def emit_error(self, message: str) -> bool:
        with self._lock:
            delivered = self._deliver(
                self._generation, PositionUpdate(status=PositionStatus.ERROR, error=message)
            )
            self._halt()
        return delivered


@pytest.fixture
def simpy_env():
    return simpy.Environment()


@pytest.fixture
def account_factory() -> AccountFactory:
    """Factory for creating accounts with seeded Faker."""
    return AccountFactory(seed=42)


@pytest.fixture
def sample_account(account_factory: AccountFactory):
    return account_factory.account()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manual_source() -> ManualPositionSource:
    return ManualPositionSource()


@pytest.fixture
def instant_gate() -> SimulatedVerificationGate:
    """Verification gate with no latency that always succeeds unless scripted."""
    return SimulatedVerificationGate(latency_seconds=0)
