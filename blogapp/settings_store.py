# blogapp/settings_store.py
"""
Key/value site settings backed by the ``system_settings`` table.

Values are stored as strings and parsed on read. Reads always hit the
database so a write is visible to the very next request.
"""

import logging

from sqlalchemy.exc import IntegrityError

from blogapp import db
from blogapp.models.system_setting import (
    SystemSetting, TYPE_BOOLEAN, TYPE_INTEGER, TYPE_STRING,
)

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "SYSTEM"


class SettingsStore:
    KEY_SITE_NAME = "site_name"
    KEY_SITE_DESCRIPTION = "site_description"
    KEY_MAINTENANCE_MODE = "maintenance_mode"
    KEY_MAINTENANCE_MESSAGE = "maintenance_message"
    KEY_DEFAULT_USER_ROLE = "default_user_role"
    KEY_REGISTRATION_ENABLED = "registration_enabled"
    KEY_COMMENTS_ENABLED = "comments_enabled"
    KEY_MAX_LOGIN_ATTEMPTS = "max_login_attempts"
    KEY_LOCKOUT_DURATION_MINUTES = "lockout_duration_minutes"

    DEFAULT_SITE_NAME = "Blog"
    DEFAULT_MAX_LOGIN_ATTEMPTS = 5
    DEFAULT_LOCKOUT_MINUTES = 30

    # key -> (value, type, description)
    DEFAULTS = (
        (KEY_SITE_NAME, DEFAULT_SITE_NAME, TYPE_STRING, "Site title shown in the header"),
        (KEY_SITE_DESCRIPTION, "A place to write and share", TYPE_STRING, "Short site description"),
        (KEY_MAINTENANCE_MODE, "false", TYPE_BOOLEAN, "Serve the maintenance page to visitors"),
        (KEY_MAINTENANCE_MESSAGE, "The site is under maintenance. Please try again later.",
         TYPE_STRING, "Message shown while in maintenance mode"),
        (KEY_DEFAULT_USER_ROLE, "USER", TYPE_STRING, "Role given to newly registered users"),
        (KEY_REGISTRATION_ENABLED, "true", TYPE_BOOLEAN, "Allow new registrations"),
        (KEY_COMMENTS_ENABLED, "true", TYPE_BOOLEAN, "Allow comments on posts"),
        (KEY_MAX_LOGIN_ATTEMPTS, str(DEFAULT_MAX_LOGIN_ATTEMPTS), TYPE_INTEGER,
         "Failed logins allowed before lockout"),
        (KEY_LOCKOUT_DURATION_MINUTES, str(DEFAULT_LOCKOUT_MINUTES), TYPE_INTEGER,
         "Lockout window in minutes"),
    )

    # ------------------------------------------------------
    # Raw access
    # ------------------------------------------------------
    def _find(self, key):
        return SystemSetting.query.filter_by(setting_key=key).first()

    def exists(self, key) -> bool:
        return self._find(key) is not None

    def get_string(self, key, default=None):
        setting = self._find(key)
        if setting is None or setting.setting_value is None:
            return default
        return setting.setting_value

    def get_bool(self, key, default: bool) -> bool:
        value = self.get_string(key)
        if value is None:
            return default
        value = value.strip().lower()
        if value == "true":
            return True
        if value == "false":
            return False
        return default

    def get_int(self, key, default: int) -> int:
        value = self.get_string(key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    def all(self):
        return SystemSetting.query.order_by(SystemSetting.setting_key).all()

    def as_dict(self):
        return {s.setting_key: s.setting_value for s in self.all()}

    # ------------------------------------------------------
    # Writes
    # ------------------------------------------------------
    def set(self, key, value, updated_by, setting_type=TYPE_STRING, description=None):
        """Insert or update ``key``. Returns the persisted row."""
        setting = self._find(key)
        if setting is None:
            setting = SystemSetting(
                setting_key=key,
                setting_value=value,
                setting_type=setting_type,
                description=description,
                updated_by=updated_by,
            )
            db.session.add(setting)
            try:
                db.session.commit()
            except IntegrityError:
                # Another writer created the key first; last write wins.
                db.session.rollback()
                setting = self._find(key)
                setting.setting_value = value
                setting.updated_by = updated_by
                db.session.commit()
        else:
            setting.setting_value = value
            setting.updated_by = updated_by
            db.session.commit()

        logger.info("Setting updated: %s = %s by %s", key, value, updated_by)
        return setting

    def set_bool(self, key, value: bool, updated_by):
        return self.set(key, "true" if value else "false", updated_by, TYPE_BOOLEAN)

    def set_int(self, key, value: int, updated_by):
        return self.set(key, str(int(value)), updated_by, TYPE_INTEGER)

    def initialize_defaults(self):
        """Create any missing well-known key. Existing values are never touched."""
        created = 0
        for key, value, setting_type, description in self.DEFAULTS:
            if self.exists(key):
                continue
            db.session.add(SystemSetting(
                setting_key=key,
                setting_value=value,
                setting_type=setting_type,
                description=description,
                updated_by=SYSTEM_ACTOR,
            ))
            try:
                db.session.commit()
                created += 1
            except IntegrityError:
                db.session.rollback()
        if created:
            logger.info("Default system settings initialized (%d created)", created)
        return created

    # ------------------------------------------------------
    # Named accessors
    # ------------------------------------------------------
    def site_name(self):
        return self.get_string(self.KEY_SITE_NAME, self.DEFAULT_SITE_NAME)

    def is_maintenance_mode(self):
        return self.get_bool(self.KEY_MAINTENANCE_MODE, False)

    def set_maintenance_mode(self, enabled: bool, updated_by):
        self.set_bool(self.KEY_MAINTENANCE_MODE, enabled, updated_by)
        logger.info("Maintenance mode %s by %s", "enabled" if enabled else "disabled", updated_by)

    def is_registration_enabled(self):
        return self.get_bool(self.KEY_REGISTRATION_ENABLED, True)

    def is_comments_enabled(self):
        return self.get_bool(self.KEY_COMMENTS_ENABLED, True)

    def default_user_role(self):
        return (self.get_string(self.KEY_DEFAULT_USER_ROLE, "USER") or "USER").upper()

    def max_login_attempts(self):
        return self.get_int(self.KEY_MAX_LOGIN_ATTEMPTS, self.DEFAULT_MAX_LOGIN_ATTEMPTS)

    def lockout_duration_minutes(self):
        return self.get_int(self.KEY_LOCKOUT_DURATION_MINUTES, self.DEFAULT_LOCKOUT_MINUTES)


settings_store = SettingsStore()
