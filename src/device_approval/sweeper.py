"""Periodic expiration sweep over approved devices."""

import logging
import threading
import traceback

from device_approval.lifecycle import LifecycleEngine
from device_approval.records import ExpiryOutcome

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Runs the engine's expired-device sweep on a fixed interval."""

    def __init__(self, engine: LifecycleEngine, interval: float = 3600):
        self.engine = engine
        self.interval = interval
        self._stop_event = threading.Event()
        self._sweep_lock = threading.Lock()
        self.last_results: list[ExpiryOutcome] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def run_once(self) -> list[ExpiryOutcome] | None:
        """Run one sweep, or return None if another sweep is still running."""
        if not self._sweep_lock.acquire(blocking=False):
            logger.info("Expiration sweep already running, skipping")
            return None

        try:
            logger.info("Starting expired devices processing...")
            results = self.engine.process_expired_devices()
            failed = sum(1 for r in results if r.status == "error")
            if results:
                logger.info("Processed %d expired devices (%d failed)", len(results), failed)
            else:
                logger.info("No expired devices found")
            self.last_results = results
            return results
        finally:
            self._sweep_lock.release()

    def run(self):
        """Run the sweep loop until stopped."""
        self._running = True
        logger.info("Expiration sweeper started, interval %s seconds", self.interval)

        try:
            while not self._stop_event.wait(self.interval):
                try:
                    self.run_once()
                except Exception:
                    logger.error("%s", traceback.format_exc())
        finally:
            self._running = False

        logger.info("Expiration sweeper stopped")

    def stop(self):
        """Stop the sweep loop."""
        self._stop_event.set()
