# blogapp/login_guard.py
"""
Brute-force protection for the login forms.

Every decision recomputes the failure count over a fixed trailing window
ending "now"; old failures simply fall out of the window.
"""

import logging
from datetime import datetime, timedelta

from blogapp.ledger import ledger as default_ledger
from blogapp.settings_store import settings_store as default_settings

logger = logging.getLogger(__name__)

# Shared-IP tolerance (NAT, office networks); not configurable.
IP_THRESHOLD_MULTIPLIER = 3
RETENTION_DAYS = 7


class LoginGuard:

    def __init__(self, ledger, settings, clock=datetime.utcnow):
        self.ledger = ledger
        self.settings = settings
        self.clock = clock

    def _window_start(self):
        minutes = self.settings.lockout_duration_minutes()
        return self.clock() - timedelta(minutes=minutes)

    def record_attempt(self, username, ip, success, is_admin_login):
        self.ledger.record(username, ip, success, is_admin_login)
        if success:
            self.ledger.clear_failures(username)
            logger.info("Successful login for user: %s", username)
        else:
            logger.warning("Failed login attempt for user: %s from IP: %s", username, ip)

    def is_blocked(self, username) -> bool:
        max_attempts = self.settings.max_login_attempts()
        failures = self.ledger.count_recent_failures(username, self._window_start())
        if failures >= max_attempts:
            logger.warning("User %s is blocked due to %d failed login attempts", username, failures)
            return True
        return False

    def is_ip_blocked(self, ip) -> bool:
        if not ip:
            return False
        max_attempts = self.settings.max_login_attempts() * IP_THRESHOLD_MULTIPLIER
        failures = self.ledger.count_recent_failures_by_ip(ip, self._window_start())
        if failures >= max_attempts:
            logger.warning("IP %s is blocked due to %d failed login attempts", ip, failures)
            return True
        return False

    def remaining_attempts(self, username) -> int:
        max_attempts = self.settings.max_login_attempts()
        failures = self.ledger.count_recent_failures(username, self._window_start())
        return max(0, max_attempts - failures)

    def clear_failures(self, username):
        self.ledger.clear_failures(username)
        logger.info("Failed login attempts cleared for user: %s", username)

    def cleanup_old_attempts(self) -> int:
        cutoff = self.clock() - timedelta(days=RETENTION_DAYS)
        deleted = self.ledger.purge_older_than(cutoff)
        logger.info("Old login attempts cleaned up (older than %s, %d removed)", cutoff, deleted)
        return deleted


login_guard = LoginGuard(default_ledger, default_settings)
