# blogapp/audit.py
"""
Administrative audit trail.

Entries are written once and never changed. Writing is best-effort: a
failed insert is logged and rolled back, and the caller carries on.
"""

import logging
import math
from collections import namedtuple
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from blogapp import db
from blogapp.models.admin_log import (
    AdminLog, AdminActionType,
    TARGET_COMMENT, TARGET_POST, TARGET_SETTINGS, TARGET_SYSTEM, TARGET_USER,
)

logger = logging.getLogger(__name__)

Page = namedtuple("Page", ["items", "page", "size", "total", "pages"])

USER_ACTIONS = {
    AdminActionType.USER_CREATE,
    AdminActionType.USER_UPDATE,
    AdminActionType.USER_DELETE,
    AdminActionType.USER_ENABLE,
    AdminActionType.USER_DISABLE,
    AdminActionType.USER_ROLE_CHANGE,
}

POST_ACTIONS = {
    AdminActionType.POST_CREATE,
    AdminActionType.POST_UPDATE,
    AdminActionType.POST_DELETE,
    AdminActionType.POST_PUBLISH,
    AdminActionType.POST_UNPUBLISH,
    AdminActionType.POST_FEATURE,
}


def _display_zone():
    try:
        name = current_app.config.get("DISPLAY_TIMEZONE", "UTC")
    except RuntimeError:
        name = "UTC"
    return ZoneInfo(name or "UTC")


def local_midnight_utc(now=None):
    """Start of the current local day, as a naive UTC datetime."""
    zone = _display_zone()
    now = now or datetime.utcnow()
    local_now = now.replace(tzinfo=timezone.utc).astimezone(zone)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=zone)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


class AuditLog:

    def record(self, actor, action_type, description, target_type=None,
               target_id=None, details=None, ip=None):
        entry = AdminLog(
            admin_id=actor.id,
            admin_username=actor.username,
            action_type=action_type,
            action=description,
            target_type=target_type,
            target_id=target_id,
            details=details,
            ip_address=ip,
        )
        db.session.add(entry)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Could not write admin log entry %s by %s", action_type, actor.username)
            return None

        logger.info("Admin action logged: %s - %s by %s", action_type.value, description, actor.username)
        return entry

    # ------------------------------------------------------
    # Convenience wrappers
    # ------------------------------------------------------
    def log_login(self, admin, ip):
        return self.record(admin, AdminActionType.LOGIN, "Admin logged in",
                           TARGET_USER, admin.id, None, ip)

    def log_logout(self, admin, ip):
        return self.record(admin, AdminActionType.LOGOUT, "Admin logged out",
                           TARGET_USER, admin.id, None, ip)

    def log_user_action(self, admin, action_type, target_user, description, ip):
        if action_type not in USER_ACTIONS:
            raise ValueError(f"{action_type} is not a user action")
        return self.record(admin, action_type, description, TARGET_USER, target_user.id,
                           f"Target user: {target_user.username}", ip)

    def log_post_action(self, admin, action_type, post_id, description, ip, details=None):
        if action_type not in POST_ACTIONS:
            raise ValueError(f"{action_type} is not a post action")
        return self.record(admin, action_type, description, TARGET_POST, post_id, details, ip)

    def log_comment_delete(self, admin, comment_id, ip, details=None):
        return self.record(admin, AdminActionType.COMMENT_DELETE, "Comment deleted",
                           TARGET_COMMENT, comment_id, details, ip)

    def log_settings_update(self, admin, key, old_value, new_value, ip):
        details = f"Setting: {key}, Old: {old_value}, New: {new_value}"
        return self.record(admin, AdminActionType.SETTINGS_UPDATE, "System setting updated",
                           TARGET_SETTINGS, None, details, ip)

    def log_maintenance_mode(self, admin, enabled, ip):
        if enabled:
            return self.record(admin, AdminActionType.MAINTENANCE_MODE_ON,
                               "Maintenance mode enabled", TARGET_SYSTEM, None, None, ip)
        return self.record(admin, AdminActionType.MAINTENANCE_MODE_OFF,
                           "Maintenance mode disabled", TARGET_SYSTEM, None, None, ip)

    # ------------------------------------------------------
    # Reads
    # ------------------------------------------------------
    def _newest_first(self, query):
        return query.order_by(AdminLog.created_at.desc(), AdminLog.id.desc())

    def recent_entries(self, limit=50):
        return self._newest_first(AdminLog.query).limit(limit).all()

    def entries_page(self, page=0, size=50):
        """Zero-based page of entries, newest first."""
        page = max(0, int(page))
        size = max(1, int(size))
        total = AdminLog.query.count()
        items = self._newest_first(AdminLog.query).offset(page * size).limit(size).all()
        pages = math.ceil(total / size) if total else 0
        return Page(items=items, page=page, size=size, total=total, pages=pages)

    def entries_by_actor(self, admin_id):
        return self._newest_first(AdminLog.query.filter_by(admin_id=admin_id)).all()

    def entries_by_target(self, target_type, target_id):
        return self._newest_first(
            AdminLog.query.filter_by(target_type=target_type, target_id=target_id)
        ).all()

    def entries_by_action(self, action_type):
        return self._newest_first(AdminLog.query.filter_by(action_type=action_type)).all()

    def entries_between(self, start, end):
        return self._newest_first(
            AdminLog.query.filter(AdminLog.created_at >= start, AdminLog.created_at <= end)
        ).all()

    def today_login_count(self, now=None) -> int:
        return AdminLog.query.filter(
            AdminLog.action_type == AdminActionType.LOGIN,
            AdminLog.created_at >= local_midnight_utc(now),
        ).count()

    def daily_counts(self, days=7, now=None):
        """``[(date, count), ...]`` for the last ``days`` UTC days, newest first, zero-filled."""
        now = now or datetime.utcnow()
        start = datetime.combine((now - timedelta(days=days - 1)).date(), time.min)
        day = func.date(AdminLog.created_at)
        rows = (
            db.session.query(day, func.count(AdminLog.id))
            .filter(AdminLog.created_at >= start)
            .group_by(day)
            .all()
        )
        counts = {str(d): c for d, c in rows}
        result = []
        for offset in range(days):
            date = (now - timedelta(days=offset)).date()
            result.append((date, counts.get(date.isoformat(), 0)))
        return result


audit_log = AuditLog()
