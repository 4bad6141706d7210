"""Wallet account eligibility and the post-trip fare debit."""

import logging

from pydantic import BaseModel, Field

from trip_engine.core.exceptions import NoActiveTrip, TripNotAllowed
from trip_engine.settings import WalletSettings
from trip_engine.trip import Trip

logger = logging.getLogger(__name__)


class Account(BaseModel):
    """Read-only view of the rider's wallet account."""

    account_id: str
    name: str = ""
    mobile: str = ""
    balance: int = Field(ge=0)
    fingerprint_registered: bool = False


class DebitResult(BaseModel):
    """Account after the debit plus any fare the balance could not cover."""

    account: Account
    trip_id: str
    charged: int = Field(ge=0)
    outstanding: int = Field(ge=0)


def check_can_start(account: Account, settings: WalletSettings | None = None) -> None:
    """Raise TripNotAllowed unless the account may begin a trip."""
    settings = settings or WalletSettings()

    if not account.fingerprint_registered:
        raise TripNotAllowed(
            "Fingerprint not registered; register at a bus station to travel",
            details={"account_id": account.account_id, "reason": "fingerprint_not_registered"},
        )
    if account.balance < settings.minimum_balance:
        raise TripNotAllowed(
            f"Balance {account.balance} is below the minimum of {settings.minimum_balance}",
            details={
                "account_id": account.account_id,
                "reason": "insufficient_balance",
                "balance": account.balance,
                "minimum_balance": settings.minimum_balance,
            },
        )


def is_low_balance(account: Account, settings: WalletSettings | None = None) -> bool:
    settings = settings or WalletSettings()
    return account.balance < settings.low_balance_threshold


def debit_fare(account: Account, trip: Trip) -> DebitResult:
    """Charge a completed trip's fare against the account balance.

    The balance never goes negative; whatever it cannot cover is
    reported as ``outstanding``.
    """
    if not trip.is_completed or trip.actual_fare is None:
        raise NoActiveTrip(
            f"Trip {trip.trip_id} is not completed; nothing to debit",
            details={"trip_id": trip.trip_id, "status": trip.status.value},
        )

    charged = min(account.balance, trip.actual_fare)
    outstanding = trip.actual_fare - charged
    updated = account.model_copy(update={"balance": account.balance - charged})

    if outstanding:
        logger.warning(
            f"Trip {trip.trip_id}: balance covered {charged} of {trip.actual_fare}, "
            f"{outstanding} outstanding"
        )
    else:
        logger.info(f"Trip {trip.trip_id}: debited {charged}, balance now {updated.balance}")

    return DebitResult(
        account=updated,
        trip_id=trip.trip_id,
        charged=charged,
        outstanding=outstanding,
    )
