# blogapp/models/admin_log.py

import enum
from datetime import datetime
from sqlalchemy import event

from blogapp import db


class AdminActionType(enum.Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_ENABLE = "USER_ENABLE"
    USER_DISABLE = "USER_DISABLE"
    USER_ROLE_CHANGE = "USER_ROLE_CHANGE"
    POST_CREATE = "POST_CREATE"
    POST_UPDATE = "POST_UPDATE"
    POST_DELETE = "POST_DELETE"
    POST_PUBLISH = "POST_PUBLISH"
    POST_UNPUBLISH = "POST_UNPUBLISH"
    POST_FEATURE = "POST_FEATURE"
    COMMENT_DELETE = "COMMENT_DELETE"
    SETTINGS_UPDATE = "SETTINGS_UPDATE"
    MAINTENANCE_MODE_ON = "MAINTENANCE_MODE_ON"
    MAINTENANCE_MODE_OFF = "MAINTENANCE_MODE_OFF"
    SYSTEM_ACTION = "SYSTEM_ACTION"


# Target type tags
TARGET_USER = "USER"
TARGET_POST = "POST"
TARGET_COMMENT = "COMMENT"
TARGET_SETTINGS = "SETTINGS"
TARGET_SYSTEM = "SYSTEM"


class AdminLog(db.Model):
    __tablename__ = "admin_logs"

    id = db.Column(db.Integer, primary_key=True)
    # Not a hard foreign key: entries outlive the admin account they describe.
    admin_id = db.Column(db.Integer, nullable=False, index=True)
    admin_username = db.Column(db.String(80), nullable=False)
    action_type = db.Column(
        db.Enum(AdminActionType, native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    action = db.Column(db.String(255), nullable=False)
    target_type = db.Column(db.String(20), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        db.Index("ix_admin_logs_target", "target_type", "target_id"),
    )

    @property
    def formatted_date(self):
        if self.created_at is None:
            return ""
        return self.created_at.strftime("%d.%m.%Y %H:%M:%S")

    def to_dict(self):
        return {
            "id": self.id,
            "admin_id": self.admin_id,
            "admin_username": self.admin_username,
            "action_type": self.action_type.value if self.action_type else None,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "details": self.details,
            "ip_address": self.ip_address,
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }

    def __repr__(self):
        return f"<AdminLog {self.action_type} by {self.admin_username}>"


# Audit trail is append-only
@event.listens_for(AdminLog, "before_update")
def _reject_update(mapper, connection, target):
    raise ValueError("Admin log entries cannot be modified.")


@event.listens_for(AdminLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise ValueError("Admin log entries cannot be deleted.")
