"""Tests for the device-backed live position source."""

import pytest

from trip_engine.positions import LivePositionSource, PositionStatus


class FakeProvider:
    """Records watches and lets the test push fixes and errors."""

    def __init__(self, fail_on_watch: Exception | None = None):
        self.fail_on_watch = fail_on_watch
        self.watches = {}
        self.cleared = []
        self._next_handle = 0

    def watch_position(self, on_fix, on_error):
        if self.fail_on_watch is not None:
            raise self.fail_on_watch
        self._next_handle += 1
        self.watches[self._next_handle] = (on_fix, on_error)
        return self._next_handle

    def clear_watch(self, handle):
        self.cleared.append(handle)
        self.watches.pop(handle, None)

    def fix(self, lat, lng, handle=None):
        on_fix, _ = self.watches[handle or max(self.watches)]
        on_fix(lat, lng)

    def fail(self, message, handle=None):
        _, on_error = self.watches[handle or max(self.watches)]
        on_error(message)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def updates():
    return []


@pytest.mark.unit
class TestLivePositionSource:
    def test_searching_until_first_fix(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)

        assert [u.status for u in updates] == [PositionStatus.SEARCHING]
        assert source.status == PositionStatus.SEARCHING

        provider.fix(12.97, 77.59)

        assert updates[-1].status == PositionStatus.LOCKED
        assert updates[-1].position.lat == 12.97
        assert source.status == PositionStatus.LOCKED

    def test_malformed_fix_discarded(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)

        provider.fix("not-a-number", 77.59)
        provider.fix(95.0, 77.59)

        assert len(updates) == 1

    def test_cancel_clears_watch(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)
        handle = max(provider.watches)

        source.cancel()

        assert provider.cleared == [handle]
        assert source.active is False

    def test_late_fix_after_cancel_ignored(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)
        on_fix, _ = provider.watches[max(provider.watches)]

        source.cancel()
        on_fix(12.97, 77.59)

        assert len(updates) == 1

    def test_error_stops_stream(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)
        on_fix, _ = provider.watches[max(provider.watches)]

        provider.fail("Permission denied")

        assert updates[-1].status == PositionStatus.ERROR
        assert updates[-1].error == "Permission denied"
        assert source.active is False
        assert provider.watches == {}

        on_fix(12.97, 77.59)
        assert updates[-1].status == PositionStatus.ERROR

    def test_restart_after_error(self, provider, updates):
        source = LivePositionSource(provider)
        source.subscribe(updates.append)
        provider.fail("Timeout")

        source.restart()
        provider.fix(12.97, 77.59)

        assert source.active is True
        assert updates[-1].status == PositionStatus.LOCKED

    def test_watch_failure_reports_error(self, updates):
        source = LivePositionSource(FakeProvider(fail_on_watch=RuntimeError("no GPS hardware")))
        source.subscribe(updates.append)

        assert [u.status for u in updates] == [PositionStatus.SEARCHING, PositionStatus.ERROR]
        assert updates[-1].error == "no GPS hardware"
        assert source.active is False

    def test_restart_without_listener_is_noop(self, provider):
        source = LivePositionSource(provider)
        source.restart()

        assert provider.watches == {}
