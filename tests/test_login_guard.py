from datetime import datetime, timedelta

import pytest

from blogapp import db
from blogapp.ledger import ledger
from blogapp.login_guard import IP_THRESHOLD_MULTIPLIER, LoginGuard
from blogapp.models.login_attempt import LoginAttempt
from blogapp.settings_store import SettingsStore, settings_store


class FakeClock:

    def __init__(self, start=None):
        self.now = start or datetime.utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock(ctx):
    return FakeClock()


@pytest.fixture
def guard(clock):
    return LoginGuard(ledger, settings_store, clock=clock)


def fail(guard, username="bob", ip="10.0.0.1", times=1, admin=False):
    for _ in range(times):
        guard.record_attempt(username, ip, False, admin)


class TestUsernameLockout:

    def test_blocked_exactly_at_threshold(self, guard):
        fail(guard, times=4)
        assert guard.is_blocked("bob") is False
        fail(guard)
        assert guard.is_blocked("bob") is True

    def test_threshold_follows_setting(self, guard):
        settings_store.set_int(SettingsStore.KEY_MAX_LOGIN_ATTEMPTS, 2, "root")
        fail(guard, times=2)
        assert guard.is_blocked("bob") is True

    def test_other_usernames_unaffected(self, guard):
        fail(guard, times=5)
        assert guard.is_blocked("carol") is False

    def test_remaining_attempts_counts_down_and_floors(self, guard):
        seen = [guard.remaining_attempts("bob")]
        for _ in range(7):
            fail(guard)
            seen.append(guard.remaining_attempts("bob"))
        assert seen == [5, 4, 3, 2, 1, 0, 0, 0]

    def test_success_clears_failures(self, guard):
        fail(guard, times=4)
        guard.record_attempt("bob", "10.0.0.1", True, False)
        assert guard.remaining_attempts("bob") == 5
        assert LoginAttempt.query.filter_by(username="bob", success=True).count() == 1
        assert LoginAttempt.query.filter_by(username="bob", success=False).count() == 0

    def test_explicit_clear(self, guard):
        fail(guard, times=5)
        guard.clear_failures("bob")
        assert guard.is_blocked("bob") is False

    def test_failures_expire_after_window(self, guard, clock):
        fail(guard, times=5)
        assert guard.is_blocked("bob") is True
        clock.advance(minutes=31)
        assert guard.is_blocked("bob") is False
        assert guard.remaining_attempts("bob") == 5

    def test_window_follows_lockout_setting(self, guard, clock):
        settings_store.set_int(SettingsStore.KEY_LOCKOUT_DURATION_MINUTES, 5, "root")
        fail(guard, times=5)
        clock.advance(minutes=4)
        assert guard.is_blocked("bob") is True
        clock.advance(minutes=2)
        assert guard.is_blocked("bob") is False

    def test_admin_and_site_failures_share_a_count(self, guard):
        fail(guard, times=3, admin=True)
        fail(guard, times=2, admin=False)
        assert guard.is_blocked("bob") is True


class TestIpLockout:

    @pytest.mark.parametrize("max_attempts", [1, 2, 5])
    def test_ip_threshold_is_multiple_of_username_threshold(self, guard, max_attempts):
        settings_store.set_int(SettingsStore.KEY_MAX_LOGIN_ATTEMPTS, max_attempts, "root")
        limit = max_attempts * IP_THRESHOLD_MULTIPLIER
        for i in range(limit - 1):
            fail(guard, username=f"user{i}")
        assert guard.is_ip_blocked("10.0.0.1") is False
        fail(guard, username="last")
        assert guard.is_ip_blocked("10.0.0.1") is True

    def test_missing_ip_is_never_blocked(self, guard):
        fail(guard, ip=None, times=20)
        assert guard.is_ip_blocked(None) is False
        assert guard.is_ip_blocked("") is False

    def test_ip_block_independent_of_username_block(self, guard):
        for name in ("a", "b", "c"):
            fail(guard, username=name, times=4)
        assert guard.is_ip_blocked("10.0.0.1") is False
        fail(guard, username="d", times=3)
        assert guard.is_ip_blocked("10.0.0.1") is True
        assert guard.is_blocked("d") is False


class TestCleanup:

    def test_cleanup_removes_rows_older_than_seven_days(self, guard, clock):
        now = clock()
        for age in (timedelta(days=8), timedelta(days=7, minutes=1), timedelta(days=6)):
            db.session.add(LoginAttempt(username="bob", ip_address="10.0.0.1",
                                        success=False, attempt_time=now - age))
        db.session.commit()

        assert guard.cleanup_old_attempts() == 2
        assert LoginAttempt.query.count() == 1

    def test_cleanup_with_nothing_to_do(self, guard):
        assert guard.cleanup_old_attempts() == 0
