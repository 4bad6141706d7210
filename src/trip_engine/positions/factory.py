"""Selects the position source implementation from configuration."""

import logging
import random

import simpy

from trip_engine.core.exceptions import PositionSourceUnavailable
from trip_engine.geo.distance import GeoPosition
from trip_engine.settings import TripSettings

from .base import PositionSource
from .live import LivePositionSource, PositionProvider
from .simulated import SimulatedPositionSource

logger = logging.getLogger(__name__)


def create_position_source(
    settings: TripSettings,
    provider: PositionProvider | None = None,
    env: simpy.Environment | None = None,
    rng: random.Random | None = None,
) -> PositionSource:
    """Build the configured source, degrading from live to simulated when no device exists."""
    if settings.position_mode == "live":
        if provider is not None:
            return LivePositionSource(provider)
        logger.warning("Live positioning requested but no provider available; using simulation")

    if env is None:
        raise PositionSourceUnavailable(
            "No positioning provider and no simulation environment configured",
            details={"position_mode": settings.position_mode},
        )

    return SimulatedPositionSource(
        env=env,
        origin=GeoPosition(
            lat=settings.simulated_origin_lat,
            lng=settings.simulated_origin_lng,
        ),
        interval_seconds=settings.simulated_interval_seconds,
        max_step_km=settings.simulated_max_step_km,
        rng=rng,
    )
