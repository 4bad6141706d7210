"""Core utilities for the trip engine."""

from .exceptions import (
    ConfigurationError,
    InvalidPosition,
    InvalidTransition,
    NoActiveTrip,
    PermanentError,
    PositionSourceUnavailable,
    StateError,
    TransientError,
    TripEngineError,
    TripNotAllowed,
    ValidationError,
    VerificationFailed,
    VerificationInProgress,
)

__all__ = [
    "TripEngineError",
    "TransientError",
    "VerificationFailed",
    "PositionSourceUnavailable",
    "PermanentError",
    "ValidationError",
    "InvalidPosition",
    "StateError",
    "InvalidTransition",
    "NoActiveTrip",
    "VerificationInProgress",
    "TripNotAllowed",
    "ConfigurationError",
]
