"""Biometric verification gate capability."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class VerificationResult(BaseModel):
    """Outcome of one verification attempt."""

    success: bool
    reason: str | None = None


class VerificationGate(ABC):
    """Opaque presence check; only the boolean outcome is interpreted."""

    @abstractmethod
    async def verify(self) -> VerificationResult:
        """Attempt verification, returning after the device latency."""


class SimulatedVerificationGate(VerificationGate):
    """Gate that answers after a fixed latency with scripted outcomes.

    Outcomes are consumed in order; once exhausted every attempt returns
    ``default_success``.
    """

    def __init__(
        self,
        latency_seconds: float = 2.0,
        outcomes: Iterable[bool | VerificationResult] | None = None,
        default_success: bool = True,
    ):
        self.latency_seconds = latency_seconds
        self.default_success = default_success
        self._outcomes: deque[bool | VerificationResult] = deque(outcomes or [])
        self.attempts = 0

    def queue_outcome(self, outcome: bool | VerificationResult) -> None:
        self._outcomes.append(outcome)

    async def verify(self) -> VerificationResult:
        self.attempts += 1
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        outcome = self._outcomes.popleft() if self._outcomes else self.default_success
        if isinstance(outcome, VerificationResult):
            return outcome
        if outcome:
            return VerificationResult(success=True)
        return VerificationResult(success=False, reason="Fingerprint not recognised")


async def run_verification(gate: VerificationGate) -> VerificationResult:
    """Await the gate, converting gate failures into a failed result."""
    try:
        return await gate.verify()
    except Exception as e:
        logger.error(f"Verification gate raised: {e}", exc_info=True)
        return VerificationResult(success=False, reason=str(e) or type(e).__name__)
