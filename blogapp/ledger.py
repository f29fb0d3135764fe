# blogapp/ledger.py
"""Append-only store of login attempts (success and failure)."""

from blogapp import db
from blogapp.models.login_attempt import LoginAttempt


class AttemptLedger:

    def record(self, username, ip, success, is_admin_login):
        if not username:
            raise ValueError("username is required to record a login attempt")
        attempt = LoginAttempt(
            username=username,
            ip_address=ip,
            success=bool(success),
            is_admin_login=bool(is_admin_login),
        )
        db.session.add(attempt)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return attempt

    def count_recent_failures(self, username, since) -> int:
        return LoginAttempt.query.filter(
            LoginAttempt.username == username,
            LoginAttempt.success.is_(False),
            LoginAttempt.attempt_time >= since,
        ).count()

    def count_recent_failures_by_ip(self, ip, since) -> int:
        if not ip:
            return 0
        return LoginAttempt.query.filter(
            LoginAttempt.ip_address == ip,
            LoginAttempt.success.is_(False),
            LoginAttempt.attempt_time >= since,
        ).count()

    def clear_failures(self, username) -> int:
        """Delete failure rows for ``username``; success rows stay."""
        deleted = LoginAttempt.query.filter(
            LoginAttempt.username == username,
            LoginAttempt.success.is_(False),
        ).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    def purge_older_than(self, cutoff) -> int:
        """Bulk delete every row with ``attempt_time < cutoff``."""
        deleted = LoginAttempt.query.filter(
            LoginAttempt.attempt_time < cutoff
        ).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    def recent_attempts(self, limit=200, admin_only=False):
        query = LoginAttempt.query
        if admin_only:
            query = query.filter(LoginAttempt.is_admin_login.is_(True))
        return (
            query.order_by(LoginAttempt.attempt_time.desc(), LoginAttempt.id.desc())
            .limit(limit)
            .all()
        )


ledger = AttemptLedger()
