# blogapp/accounts.py
"""
User administration performed from the admin panel.

Every operation validates first, writes, commits, and only then writes
the audit entry, so an audit failure never undoes the change itself.
"""

import logging
import re

from blogapp import db
from blogapp.audit import audit_log
from blogapp.errors import AuthorizationDenied, NotFoundError, ValidationError
from blogapp.models.admin_log import AdminActionType, TARGET_USER
from blogapp.models.user import User, ROLES

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _username_valid(username: str) -> bool:
    """3–32 chars, letters/numbers/underscore only."""
    if not username:
        return False
    if len(username) < 3 or len(username) > 32:
        return False
    return re.fullmatch(r"[A-Za-z0-9_]+", username) is not None


def _email_valid(email: str) -> bool:
    if not email or len(email) > 255:
        return False
    return re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email) is not None


def validate_new_account(username, email, exclude_id=None):
    if not _username_valid(username):
        raise ValidationError("Username must be 3–32 characters, letters/numbers/underscore only.")
    if not _email_valid(email):
        raise ValidationError("Please enter a valid email address.")

    existing = User.query.filter_by(username=username).first()
    if existing and existing.id != exclude_id:
        raise ValidationError("That username is already taken.")
    existing = User.query.filter_by(email=email).first()
    if existing and existing.id != exclude_id:
        raise ValidationError("That email address is already in use.")


def get_user(user_id) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def list_users(page=0, size=20, search=None):
    query = User.query
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(User.username.ilike(pattern), User.email.ilike(pattern)))
    total = query.count()
    items = query.order_by(User.created_at.desc(), User.id.desc()).offset(page * size).limit(size).all()
    return items, total


def create_user(admin, username, email, password, role, ip):
    username = (username or "").strip()
    email = (email or "").strip()
    role = (role or "").upper()

    validate_new_account(username, email)
    if role not in ROLES:
        raise ValidationError("Unknown role.")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    user = User(username=username, email=email, role=role, is_enabled=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    audit_log.log_user_action(admin, AdminActionType.USER_CREATE, user,
                              f"User created: {username}", ip)
    logger.info("User %s created by admin %s", username, admin.username)
    return user


def update_email(admin, user_id, email, ip):
    user = get_user(user_id)
    email = (email or "").strip()
    if not _email_valid(email):
        raise ValidationError("Please enter a valid email address.")
    existing = User.query.filter_by(email=email).first()
    if existing and existing.id != user.id:
        raise ValidationError("That email address is already in use.")

    old_email = user.email
    user.email = email
    db.session.commit()

    audit_log.log_user_action(admin, AdminActionType.USER_UPDATE, user,
                              f"Email changed: {old_email} -> {email}", ip)
    return user


def reset_password(admin, user_id, new_password, ip):
    user = get_user(user_id)
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    user.set_password(new_password)
    db.session.commit()

    audit_log.log_user_action(admin, AdminActionType.USER_UPDATE, user, "Password reset", ip)
    logger.info("Password reset for user %s by admin %s", user.username, admin.username)
    return user


def toggle_enabled(admin, user_id, ip):
    user = get_user(user_id)
    if user.id == admin.id:
        raise AuthorizationDenied("You cannot disable your own account.")

    was_enabled = user.is_enabled
    user.is_enabled = not was_enabled
    db.session.commit()

    if was_enabled:
        audit_log.log_user_action(admin, AdminActionType.USER_DISABLE, user, "User disabled", ip)
    else:
        audit_log.log_user_action(admin, AdminActionType.USER_ENABLE, user, "User enabled", ip)
    logger.info("User %s %s by admin %s", user.username,
                "disabled" if was_enabled else "enabled", admin.username)
    return user


def change_role(admin, user_id, new_role, ip):
    user = get_user(user_id)
    new_role = (new_role or "").upper()
    if new_role not in ROLES:
        raise ValidationError("Unknown role.")
    if user.id == admin.id:
        raise AuthorizationDenied("You cannot change your own role.")

    old_role = user.role
    user.role = new_role
    db.session.commit()

    audit_log.log_user_action(admin, AdminActionType.USER_ROLE_CHANGE, user,
                              f"Role changed: {old_role} -> {new_role}", ip)
    logger.info("User %s role changed from %s to %s by admin %s",
                user.username, old_role, new_role, admin.username)
    return user


def delete_user(admin, user_id, ip):
    user = get_user(user_id)
    if user.id == admin.id:
        raise AuthorizationDenied("You cannot delete yourself.")

    username = user.username
    db.session.delete(user)
    db.session.commit()

    audit_log.record(admin, AdminActionType.USER_DELETE, f"User deleted: {username}",
                     TARGET_USER, user_id, f"Target user: {username}", ip)
    logger.info("User %s deleted by admin %s", username, admin.username)
