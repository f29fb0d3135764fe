# blogapp/scheduler.py
"""Daily background purge of the login attempt ledger."""

import logging
import threading
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


def seconds_until(hour, minute=0, now=None):
    """Seconds from ``now`` until the next local ``hour:minute``."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class CleanupScheduler:

    def __init__(self, app, guard, hour=3, minute=0):
        self.app = app
        self.guard = guard
        self.hour = hour
        self.minute = minute
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_forever,
            daemon=True,
            name="login-attempt-cleanup",
        )
        self._thread.start()
        logger.info("Login attempt cleanup scheduled daily at %02d:%02d", self.hour, self.minute)

    def stop(self, timeout=5):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self):
        """Run the purge inside an app context. Never raises."""
        try:
            with self.app.app_context():
                return self.guard.cleanup_old_attempts()
        except Exception:
            logger.exception("Login attempt cleanup failed")
            return None

    def _run_forever(self):
        while not self._stop_event.is_set():
            if self._stop_event.wait(seconds_until(self.hour, self.minute)):
                break
            self.run_once()
