"""
Transit Trip Engine - demo entry point

Runs one simulated ride end to end: pickup verification, a simulated
GPS stream advanced in real time by a background SimPy thread, drop
verification and the wallet debit.
"""

import argparse
import asyncio
import logging
import random

from trip_engine.account import Account, debit_fare, is_low_balance
from trip_engine.engine import TripStateMachine
from trip_engine.fare import FarePolicy
from trip_engine.positions import SimulationRunner, create_position_source
from trip_engine.settings import Settings, get_settings
from trip_engine.snapshots import TripSnapshot
from trip_engine.trip_logging import setup_logging
from trip_engine.verification import SimulatedVerificationGate

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a simulated transit trip")
    parser.add_argument("--seconds", type=float, default=20.0, help="Ride duration in seconds")
    parser.add_argument("--balance", type=int, default=100, help="Starting wallet balance")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the simulated route")
    parser.add_argument(
        "--speed", type=float, default=1.0, help="Simulated seconds per wall-clock second"
    )
    return parser.parse_args(argv)


def log_snapshot(snapshot: TripSnapshot) -> None:
    if snapshot.trip is None:
        logger.info(f"[{snapshot.phase.value}] gps={snapshot.gps_status}")
        return
    logger.info(
        f"[{snapshot.phase.value}] {snapshot.trip.trip_id} "
        f"{snapshot.display_distance_km} km, fare {snapshot.trip.estimated_fare}, "
        f"gps={snapshot.gps_status.value if snapshot.gps_status else '-'}"
    )


async def run_demo(settings: Settings, args: argparse.Namespace) -> None:
    runner = SimulationRunner.realtime(factor=1.0 / args.speed)
    source = create_position_source(
        settings.trip,
        env=runner.env,
        rng=random.Random(args.seed),
    )
    gate = SimulatedVerificationGate(
        latency_seconds=settings.trip.verification_latency_seconds,
    )
    machine = TripStateMachine(
        position_source=source,
        verification_gate=gate,
        fare_policy=FarePolicy.from_settings(settings.fare),
        settings=settings.trip,
        wallet_settings=settings.wallet,
    )
    machine.add_observer(log_snapshot)

    account = Account(
        account_id="demo-account",
        name="Demo Rider",
        balance=args.balance,
        fingerprint_registered=True,
    )
    if is_low_balance(account, settings.wallet):
        logger.warning(f"Low balance ({account.balance}); please recharge soon")

    runner.start()
    try:
        machine.begin_pickup(account)
        await machine.start_ongoing()
        await asyncio.sleep(args.seconds)
        machine.request_drop()
        trip = await machine.complete_trip()
    finally:
        runner.stop()

    result = debit_fare(account, trip)
    logger.info(
        f"Trip {trip.trip_id} finished: {trip.display_distance_km} km, "
        f"charged {result.charged}, balance {result.account.balance}"
    )
    machine.reset()


def main(argv: list[str] | None = None) -> None:
    """Main entry point - runs one simulated trip."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(
        level=settings.trip.log_level,
        json_output=settings.trip.log_format == "json",
        environment=settings.trip.environment,
    )

    # The demo never has a device provider
    settings = settings.model_copy(
        update={"trip": settings.trip.model_copy(update={"position_mode": "simulated"})}
    )

    logger.info("Starting simulated trip demo...")
    asyncio.run(run_demo(settings, args))


if __name__ == "__main__":
    main()
