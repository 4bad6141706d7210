"""Exception hierarchy for the trip engine."""

from typing import Any


class TripEngineError(Exception):
    """Base exception for all trip engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(TripEngineError):
    """Errors that may succeed on retry."""

    pass


class VerificationFailed(TransientError):
    """Biometric verification was denied; the caller may retry the gate."""

    pass


class PositionSourceUnavailable(TransientError):
    """Positioning capability is missing or stopped with an error."""

    pass


class PermanentError(TripEngineError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class InvalidPosition(ValidationError):
    """Malformed or out-of-range position sample."""

    pass


class StateError(PermanentError):
    """Operation invoked out of sequence."""

    pass


class InvalidTransition(StateError):
    """Requested phase change is not in the transition table."""

    pass


class NoActiveTrip(StateError):
    """Operation needs a trip but none is in the required phase."""

    pass


class VerificationInProgress(StateError):
    """A verification is already awaiting its result."""

    pass


class TripNotAllowed(PermanentError):
    """Account is not eligible to start a trip."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass
