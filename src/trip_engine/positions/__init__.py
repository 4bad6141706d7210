from .base import PositionListener, PositionSource, PositionStatus, PositionUpdate
from .factory import create_position_source
from .live import LivePositionSource, PositionProvider
from .runner import SimulationRunner
from .simulated import SimulatedPositionSource

__all__ = [
    "PositionSource",
    "PositionStatus",
    "PositionUpdate",
    "PositionListener",
    "LivePositionSource",
    "PositionProvider",
    "SimulatedPositionSource",
    "SimulationRunner",
    "create_position_source",
]
