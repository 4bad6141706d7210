"""Trip lifecycle and fare-accrual engine for a transit wallet."""

from trip_engine.account import Account, DebitResult, check_can_start, debit_fare, is_low_balance
from trip_engine.engine import TripStateMachine
from trip_engine.fare import FareBreakdown, FarePolicy
from trip_engine.snapshots import TripSnapshot
from trip_engine.trip import Trip, TripPhase, TripStatus
from trip_engine.verification import (
    SimulatedVerificationGate,
    VerificationGate,
    VerificationResult,
)

__all__ = [
    "TripStateMachine",
    "Trip",
    "TripPhase",
    "TripStatus",
    "TripSnapshot",
    "FarePolicy",
    "FareBreakdown",
    "Account",
    "DebitResult",
    "check_can_start",
    "debit_fare",
    "is_low_balance",
    "VerificationGate",
    "VerificationResult",
    "SimulatedVerificationGate",
]
