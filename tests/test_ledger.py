from datetime import datetime, timedelta

import pytest

from blogapp import db
from blogapp.ledger import ledger
from blogapp.models.login_attempt import LoginAttempt


def _attempt(username, ip, success, when, is_admin_login=False):
    db.session.add(LoginAttempt(
        username=username, ip_address=ip, success=success,
        is_admin_login=is_admin_login, attempt_time=when,
    ))
    db.session.commit()


@pytest.mark.usefixtures("ctx")
class TestAttemptLedger:

    def test_record_requires_username(self):
        with pytest.raises(ValueError):
            ledger.record("", "10.0.0.1", False, False)
        assert LoginAttempt.query.count() == 0

    def test_record_stamps_time(self):
        attempt = ledger.record("bob", "10.0.0.1", False, True)
        assert attempt.id is not None
        assert attempt.attempt_time is not None
        assert attempt.is_admin_login is True

    def test_counts_only_failures_since(self):
        now = datetime.utcnow()
        _attempt("bob", "10.0.0.1", False, now - timedelta(minutes=5))
        _attempt("bob", "10.0.0.1", False, now - timedelta(minutes=45))
        _attempt("bob", "10.0.0.1", True, now - timedelta(minutes=1))
        _attempt("carol", "10.0.0.1", False, now - timedelta(minutes=1))

        since = now - timedelta(minutes=30)
        assert ledger.count_recent_failures("bob", since) == 1
        assert ledger.count_recent_failures_by_ip("10.0.0.1", since) == 2

    def test_ip_count_without_ip_is_zero(self):
        ledger.record("bob", None, False, False)
        assert ledger.count_recent_failures_by_ip(None, datetime.utcnow() - timedelta(hours=1)) == 0

    def test_clear_failures_keeps_successes(self):
        ledger.record("bob", "10.0.0.1", False, False)
        ledger.record("bob", "10.0.0.1", False, False)
        ledger.record("bob", "10.0.0.1", True, False)
        ledger.record("carol", "10.0.0.1", False, False)

        assert ledger.clear_failures("bob") == 2
        assert LoginAttempt.query.filter_by(username="bob").count() == 1
        assert LoginAttempt.query.filter_by(username="carol").count() == 1

    def test_purge_is_strictly_before_cutoff(self):
        cutoff = datetime(2024, 1, 8, 12, 0, 0)
        _attempt("bob", "10.0.0.1", False, cutoff - timedelta(seconds=1))
        _attempt("bob", "10.0.0.1", True, cutoff)
        _attempt("bob", "10.0.0.1", False, cutoff + timedelta(days=1))

        assert ledger.purge_older_than(cutoff) == 1
        assert LoginAttempt.query.count() == 2

    def test_recent_attempts_newest_first_and_filter(self):
        now = datetime.utcnow()
        _attempt("bob", "10.0.0.1", False, now - timedelta(minutes=3))
        _attempt("root", "10.0.0.2", True, now - timedelta(minutes=2), is_admin_login=True)
        _attempt("carol", "10.0.0.3", False, now - timedelta(minutes=1))

        assert [a.username for a in ledger.recent_attempts()] == ["carol", "root", "bob"]
        assert [a.username for a in ledger.recent_attempts(admin_only=True)] == ["root"]
        assert len(ledger.recent_attempts(limit=2)) == 2

    def test_attempts_cannot_be_modified(self):
        attempt = ledger.record("bob", "10.0.0.1", False, False)
        attempt.success = True
        with pytest.raises(ValueError):
            db.session.commit()
        db.session.rollback()
