# blogapp/models/login_attempt.py

from datetime import datetime
from sqlalchemy import event

from blogapp import db

USERNAME_LENGTH = 80
IP_LENGTH = 64


class LoginAttempt(db.Model):
    __tablename__ = "login_attempts"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(USERNAME_LENGTH), nullable=False, index=True)
    ip_address = db.Column(db.String(IP_LENGTH), nullable=True, index=True)
    attempt_time = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    success = db.Column(db.Boolean, nullable=False, default=False)
    is_admin_login = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self):
        state = "ok" if self.success else "failed"
        return f"<LoginAttempt {self.username} {state} {self.attempt_time}>"


@event.listens_for(LoginAttempt, "before_update")
def _reject_attempt_update(mapper, connection, target):
    raise ValueError("Login attempts are immutable once recorded.")
