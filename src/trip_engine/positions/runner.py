"""Background thread that advances a realtime SimPy environment."""

import logging
import threading

import simpy
import simpy.rt

logger = logging.getLogger(__name__)


class SimulationRunner:
    """Runs the environment in a background thread so simulated samples arrive on wall-clock time."""

    def __init__(self, env: simpy.Environment, step_seconds: float = 0.5):
        self._env = env
        self._step_seconds = step_seconds
        self._running = False
        self._thread: threading.Thread | None = None

    @classmethod
    def realtime(cls, factor: float = 1.0, step_seconds: float = 0.5) -> "SimulationRunner":
        """Create a runner over a fresh non-strict realtime environment."""
        env = simpy.rt.RealtimeEnvironment(factor=factor, strict=False)
        return cls(env, step_seconds=step_seconds)

    @property
    def env(self) -> simpy.Environment:
        return self._env

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the simulation loop in a background thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()
        logger.info("Position simulation loop started in background thread")

    def stop(self) -> None:
        """Stop the simulation loop."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.info("Position simulation loop stopped")

    def _run_loop(self) -> None:
        while self._running:
            self._env.run(until=self._env.now + self._step_seconds)
