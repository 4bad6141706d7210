"""Trip state machine coordinating verification, positions and fares."""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from functools import partial

from trip_engine.account import Account, check_can_start
from trip_engine.core.exceptions import (
    InvalidPosition,
    InvalidTransition,
    NoActiveTrip,
    VerificationFailed,
    VerificationInProgress,
)
from trip_engine.fare import FarePolicy
from trip_engine.geo.accumulator import DistanceAccumulator
from trip_engine.geo.distance import GeoPosition
from trip_engine.geo.sample_filter import GeoSampleFilter
from trip_engine.positions.base import PositionSource, PositionStatus, PositionUpdate
from trip_engine.settings import TripSettings, WalletSettings
from trip_engine.snapshots import TripSnapshot
from trip_engine.trip import VALID_TRANSITIONS, Trip, TripPhase
from trip_engine.trip_logging import log_context, log_trip_context
from trip_engine.verification import VerificationGate, run_verification

logger = logging.getLogger(__name__)

SnapshotObserver = Callable[[TripSnapshot], None]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TripStateMachine:
    """Owns the current trip and applies every transition and position sample.

    All mutation happens under one re-entrant lock, so samples arriving
    from a producer thread are applied one at a time. Each position
    subscription is tagged with a generation number; updates carrying a
    stale generation (cancelled or replaced subscriptions) are dropped.
    """

    def __init__(
        self,
        position_source: PositionSource,
        verification_gate: VerificationGate,
        fare_policy: FarePolicy | None = None,
        settings: TripSettings | None = None,
        wallet_settings: WalletSettings | None = None,
        sample_filter: GeoSampleFilter | None = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] | None = None,
    ):
        self._settings = settings or TripSettings()
        self._wallet_settings = wallet_settings or WalletSettings()
        self._source = position_source
        self._gate = verification_gate
        self._fare_policy = fare_policy or FarePolicy()
        self._filter = sample_filter or GeoSampleFilter(self._settings.noise_threshold_km)
        self._clock = clock
        self._id_factory = id_factory or self._default_trip_id

        self._lock = threading.RLock()
        self._phase = TripPhase.IDLE
        self._trip: Trip | None = None
        self._accumulator = DistanceAccumulator()
        self._last_position: GeoPosition | None = None
        self._gps_status: PositionStatus | None = None
        self._last_error: str | None = None
        self._account_id: str | None = None
        self._generation = 0
        self._verifying = False
        self._sequence = 0
        self._observers: list[SnapshotObserver] = []

    @property
    def phase(self) -> TripPhase:
        return self._phase

    @property
    def trip(self) -> Trip | None:
        """Copy of the working trip, or None when no trip is held."""
        with self._lock:
            return self._trip.model_copy(deep=True) if self._trip else None

    @property
    def last_position(self) -> GeoPosition | None:
        return self._last_position

    @property
    def position_source(self) -> PositionSource:
        return self._source

    @property
    def verifying(self) -> bool:
        return self._verifying

    def add_observer(self, observer: SnapshotObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    def remove_observer(self, observer: SnapshotObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def snapshot(self) -> TripSnapshot:
        with self._lock:
            return self._build_snapshot(self._trip)

    def begin_pickup(self, account: Account | None = None) -> TripSnapshot:
        """idle -> pickup. Checks wallet eligibility when an account is given."""
        if account is not None:
            check_can_start(account, self._wallet_settings)

        with self._lock:
            self._transition(TripPhase.PICKUP)
            self._account_id = account.account_id if account is not None else None
            self._last_error = None
            with self._log_context():
                logger.info("Awaiting pickup verification")
            return self._publish()

    def cancel_pickup(self) -> TripSnapshot:
        """pickup -> idle, abandoning the trip before it starts."""
        with self._lock:
            self._ensure_not_verifying()
            with self._log_context():
                logger.info("Pickup cancelled")
            self._transition(TripPhase.IDLE)
            self._account_id = None
            self._last_error = None
            return self._publish()

    async def start_ongoing(self, pickup_location: str | None = None) -> Trip:
        """pickup -> ongoing once the verification gate succeeds.

        Raises:
            InvalidTransition: not in the pickup phase
            VerificationInProgress: another verification is pending
            VerificationFailed: the gate denied; phase stays at pickup
        """
        with self._lock:
            if self._phase != TripPhase.PICKUP:
                raise InvalidTransition(
                    f"Cannot start trip from {self._phase.value}",
                    details={"phase": self._phase.value},
                )
            self._ensure_not_verifying()
            self._verifying = True

        try:
            result = await run_verification(self._gate)
        finally:
            with self._lock:
                self._verifying = False

        if not result.success:
            self._record_verification_failure("pickup", result.reason)

        with self._lock:
            now = self._clock()
            self._trip = Trip(
                trip_id=self._id_factory(),
                pickup_location=pickup_location or self._settings.default_pickup_location,
                pickup_time=now,
            )
            self._accumulator.reset()
            self._last_position = None
            self._gps_status = None
            self._last_error = None
            self._transition(TripPhase.ONGOING)
            generation = self._next_generation()
            with self._log_context():
                logger.info(f"Trip {self._trip.trip_id}: pickup verified, trip ongoing")
            self._publish()
            started = self._trip.model_copy(deep=True)

        self._subscribe(generation)
        return started

    def record_position(self, sample: GeoPosition | tuple[float, float]) -> bool:
        """Apply one sample to the ongoing trip.

        Returns True when the sample added distance. Outside the ongoing
        phase this is a no-op returning False. Malformed samples are logged
        and discarded.
        """
        with self._lock:
            if self._phase != TripPhase.ONGOING or self._trip is None:
                return False

            try:
                position = sample if isinstance(sample, GeoPosition) else GeoPosition.parse(*sample)
            except (InvalidPosition, TypeError) as e:
                with self._log_context():
                    logger.warning(
                        f"Trip {self._trip.trip_id}: discarding invalid sample {sample!r}: {e}"
                    )
                return False

            accepted = self._apply_position(position)
            if accepted:
                self._publish()
            return accepted

    def request_drop(self) -> TripSnapshot:
        """ongoing -> drop. Distance accrual stops before this returns."""
        with self._lock:
            self._transition(TripPhase.DROP)
            self._next_generation()
            with self._log_context():
                logger.info(
                    f"Trip {self._trip.trip_id}: drop requested at "
                    f"{self._trip.display_distance_km} km"
                )
            snapshot = self._publish()

        self._source.cancel()
        return snapshot

    def resume_trip(self) -> TripSnapshot:
        """drop -> ongoing when the rider abandons the drop before verifying."""
        with self._lock:
            self._ensure_not_verifying()
            if self._trip is None:
                raise NoActiveTrip("No trip to resume")
            self._transition(TripPhase.ONGOING)
            self._last_position = None
            self._last_error = None
            generation = self._next_generation()
            with self._log_context():
                logger.info(f"Trip {self._trip.trip_id}: drop abandoned, trip resumed")
            snapshot = self._publish()

        self._subscribe(generation)
        return snapshot

    async def complete_trip(self, drop_location: str | None = None) -> Trip:
        """drop -> completed once the verification gate succeeds.

        Returns the finalized trip; the engine's working copy is cleared.

        Raises:
            NoActiveTrip: no trip is awaiting drop verification
            VerificationInProgress: another verification is pending
            VerificationFailed: the gate denied; phase stays at drop
        """
        with self._lock:
            if self._phase != TripPhase.DROP or self._trip is None:
                raise NoActiveTrip(
                    f"No trip awaiting drop verification (phase {self._phase.value})",
                    details={"phase": self._phase.value},
                )
            self._ensure_not_verifying()
            self._verifying = True

        try:
            result = await run_verification(self._gate)
        finally:
            with self._lock:
                self._verifying = False

        if not result.success:
            self._record_verification_failure("drop", result.reason)

        with self._lock:
            trip = self._trip
            trip.complete(
                drop_location=drop_location or self._settings.default_drop_location,
                drop_time=self._clock(),
            )
            finalized = trip.model_copy(deep=True)
            self._trip = None
            self._last_error = None
            self._transition(TripPhase.COMPLETED)
            with self._log_context(trip_id=finalized.trip_id):
                logger.info(
                    f"Trip {finalized.trip_id}: completed, "
                    f"{finalized.display_distance_km} km, fare {finalized.actual_fare}"
                )
            self._publish(trip=finalized)

        return finalized

    def reset(self) -> TripSnapshot:
        """completed -> idle, ready for a new trip."""
        with self._lock:
            self._transition(TripPhase.IDLE)
            self._trip = None
            self._account_id = None
            self._last_position = None
            self._gps_status = None
            self._last_error = None
            return self._publish()

    def switch_position_source(self, source: PositionSource) -> None:
        """Replace the position source, moving an ongoing subscription over."""
        with self._lock:
            previous = self._source
            self._source = source
            generation = None
            if self._phase == TripPhase.ONGOING:
                self._last_position = None
                self._gps_status = None
                generation = self._next_generation()
            with self._log_context():
                logger.info(f"Position source switched from {previous.mode} to {source.mode}")

        if previous is not source:
            previous.cancel()
        if generation is not None:
            self._subscribe(generation)

    def restart_position_source(self) -> None:
        """Resubscribe after the source stopped with an error."""
        self.switch_position_source(self._source)

    def _subscribe(self, generation: int) -> None:
        source = self._source
        source.subscribe(partial(self._on_position_update, generation))
        with self._lock:
            stale = generation != self._generation
            if not stale and self._gps_status is None:
                self._gps_status = source.status
        if stale:
            source.cancel()

    def _on_position_update(self, generation: int, update: PositionUpdate) -> None:
        with self._lock:
            if generation != self._generation or self._phase != TripPhase.ONGOING:
                return

            changed = False
            if update.status != self._gps_status:
                self._gps_status = update.status
                changed = True
            if update.status == PositionStatus.ERROR:
                self._last_error = update.error or "Position source error"
                changed = True
            if update.position is not None:
                try:
                    if self._apply_position(update.position):
                        changed = True
                except Exception as e:
                    with self._log_context():
                        logger.error(
                            f"Dropping position sample {update.position!r}: {e}", exc_info=True
                        )

            if changed:
                self._publish()

    def _apply_position(self, position: GeoPosition) -> bool:
        decision = self._filter.evaluate(self._last_position, position)
        self._last_position = position
        if not decision.accepted:
            return False

        total_km = self._accumulator.add(decision.delta_km)
        self._trip.update_progress(total_km, self._fare_policy.fare(total_km))
        with self._log_context():
            logger.debug(
                f"Trip {self._trip.trip_id}: +{decision.delta_km:.4f} km, "
                f"total {total_km:.4f} km, fare {self._trip.estimated_fare}"
            )
        return True

    def _record_verification_failure(self, stage: str, reason: str | None) -> None:
        message = reason or "Verification failed"
        with self._lock:
            self._last_error = message
            with self._log_context():
                logger.warning(f"{stage.capitalize()} verification failed: {message}")
            self._publish()
        raise VerificationFailed(message, details={"stage": stage})

    def _transition(self, new_phase: TripPhase) -> None:
        if new_phase not in VALID_TRANSITIONS[self._phase]:
            raise InvalidTransition(
                f"Invalid transition from {self._phase.value} to {new_phase.value}",
                details={"from": self._phase.value, "to": new_phase.value},
            )
        logger.debug(f"Phase {self._phase.value} -> {new_phase.value}")
        self._phase = new_phase

    def _ensure_not_verifying(self) -> None:
        if self._verifying:
            raise VerificationInProgress(
                "A verification is already pending",
                details={"phase": self._phase.value},
            )

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _default_trip_id(self) -> str:
        return f"TRIP{int(self._clock().timestamp() * 1000)}"

    def _build_snapshot(self, trip: Trip | None) -> TripSnapshot:
        return TripSnapshot(
            sequence=self._sequence,
            timestamp=self._clock(),
            phase=self._phase,
            trip=trip.model_copy(deep=True) if trip else None,
            position_mode=self._source.mode,
            gps_status=self._gps_status,
            last_position=self._last_position,
            last_error=self._last_error,
        )

    def _publish(self, trip: Trip | None = None) -> TripSnapshot:
        self._sequence += 1
        snapshot = self._build_snapshot(trip or self._trip)
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception as e:
                with self._log_context():
                    logger.error(f"Snapshot observer failed: {e}", exc_info=True)
        return snapshot

    def _log_context(self, trip_id: str | None = None):
        """Scope log records to the current trip, account and phase."""
        trip_id = trip_id or (self._trip.trip_id if self._trip else None)
        if trip_id is None:
            return log_context(account_id=self._account_id, phase=self._phase.value)
        return log_trip_context(trip_id, account_id=self._account_id, phase=self._phase.value)
