# blogapp/models/system_setting.py

from datetime import datetime
from blogapp import db

TYPE_STRING = "STRING"
TYPE_BOOLEAN = "BOOLEAN"
TYPE_INTEGER = "INTEGER"


class SystemSetting(db.Model):
    __tablename__ = "system_settings"

    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    setting_value = db.Column(db.Text, nullable=True)
    setting_type = db.Column(db.String(20), nullable=False, default=TYPE_STRING)
    description = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = db.Column(db.String(80), nullable=True)

    def __repr__(self):
        return f"<SystemSetting {self.setting_key}={self.setting_value!r}>"
