# blogapp/auth.py
from flask import Blueprint, request, redirect, url_for, render_template, flash, current_app
from flask_login import (
    LoginManager, login_user,
    logout_user, login_required, current_user
)
from dataclasses import dataclass
from functools import wraps
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from blogapp import db, limiter
from blogapp.audit import audit_log
from blogapp.errors import BlogError
from blogapp.forms import RegistrationForm
from blogapp.login_guard import login_guard
from blogapp.models.login_attempt import IP_LENGTH, USERNAME_LENGTH
from blogapp.models.user import User, ROLES, ROLE_USER
from blogapp.settings_store import settings_store

logger = logging.getLogger(__name__)

# ------------------------------------------------------
# Init components
# ------------------------------------------------------
auth_bp = Blueprint("auth", __name__)
login_manager = LoginManager()
login_manager.login_view = "auth.login"


@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


# ------------------------------------------------------
# Admin-only decorator
# ------------------------------------------------------
def admin_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return redirect(url_for("admin_bp.login", next=request.path))
        if not current_user.is_admin():
            return redirect(url_for("admin_bp.login", error="access_denied"))
        return f(*args, **kwargs)
    return decorated


# ------------------------------------------------------
# Client address (first X-Forwarded-For hop wins)
# ------------------------------------------------------
def get_client_ip():
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first[:IP_LENGTH]
    return request.remote_addr


def login_rate_limit():
    return current_app.config.get("LOGIN_RATE_LIMIT", "30 per minute")


# ------------------------------------------------------
# Login pipelines
# ------------------------------------------------------
@dataclass(frozen=True)
class LoginPipeline:
    """Per-area login policy; both areas share the same guard."""

    name: str
    login_endpoint: str
    success_endpoint: str
    is_admin_login: bool
    audit_on_success: bool
    show_remaining: bool


ADMIN_PIPELINE = LoginPipeline(
    name="admin",
    login_endpoint="admin_bp.login",
    success_endpoint="admin_bp.dashboard",
    is_admin_login=True,
    audit_on_success=True,
    show_remaining=True,
)

USER_PIPELINE = LoginPipeline(
    name="user",
    login_endpoint="auth.login",
    success_endpoint="blog.home",
    is_admin_login=False,
    audit_on_success=False,
    show_remaining=False,
)

OUTCOME_SUCCESS = "success"
OUTCOME_INVALID = "invalid"
OUTCOME_BLOCKED = "blocked"


@dataclass
class LoginOutcome:
    status: str
    user: Optional[User] = None
    remaining: Optional[int] = None


def process_login(pipeline, username, password, ip, guard=login_guard, audit=audit_log):
    """
    Run one login form submission. Records exactly one attempt.

    Credentials are checked first; the guard is consulted only when they
    are rejected, so a correct password always gets the owner in and
    clears their failures.
    """
    username = ((username or "").strip() or "unknown")[:USERNAME_LENGTH]

    user = User.query.filter_by(username=username).first()
    authenticated = (
        user is not None
        and user.check_password(password)
        and login_user(user)
    )

    guard.record_attempt(username, ip, authenticated, pipeline.is_admin_login)

    if authenticated:
        if pipeline.audit_on_success and user.is_admin():
            audit.log_login(user, ip)
        return LoginOutcome(OUTCOME_SUCCESS, user=user)

    if guard.is_blocked(username) or guard.is_ip_blocked(ip):
        return LoginOutcome(OUTCOME_BLOCKED)
    return LoginOutcome(OUTCOME_INVALID, remaining=guard.remaining_attempts(username))


def outcome_redirect(pipeline, outcome):
    if outcome.status == OUTCOME_SUCCESS:
        return redirect(url_for(pipeline.success_endpoint))
    if outcome.status == OUTCOME_BLOCKED:
        return redirect(url_for(pipeline.login_endpoint, blocked="true"))
    if pipeline.show_remaining:
        return redirect(url_for(pipeline.login_endpoint, error="true", remaining=outcome.remaining))
    return redirect(url_for(pipeline.login_endpoint, error="true"))


def login_page_messages():
    """Translate the query string left by ``outcome_redirect`` into page messages."""
    error = None
    message = None
    if request.args.get("blocked"):
        error = "Too many failed login attempts. Please try again later."
    elif request.args.get("error") == "access_denied":
        error = "Administrator permissions required."
    elif request.args.get("error"):
        error = "Invalid username or password."
        remaining = request.args.get("remaining", type=int)
        if remaining is not None:
            error += f" {remaining} attempt(s) remaining."
    if request.args.get("logout"):
        message = "You have been logged out."
    return error, message


# ------------------------------------------------------
# Registration
# ------------------------------------------------------
def register_user(username, email, password, role=None):
    """Create an account. Raises ValidationError on duplicates."""
    from blogapp.accounts import validate_new_account

    validate_new_account(username, email)
    role = (role or settings_store.default_user_role()).upper()
    if role not in ROLES:
        role = ROLE_USER

    user = User(username=username, email=email, role=role, is_enabled=True)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    logger.info("Registered new user %s", username)
    return user


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if current_user.is_authenticated:
        return redirect(url_for("blog.home"))

    if not settings_store.is_registration_enabled():
        flash("Registration is currently closed.", "warning")
        return redirect(url_for("auth.login"))

    form = RegistrationForm()
    if form.validate_on_submit():
        try:
            register_user(form.username.data.strip(), form.email.data.strip(), form.password.data)
        except BlogError as exc:
            flash(str(exc), exc.category)
            return render_template("register.html", form=form)

        flash("Registration successful. You can now log in.", "success")
        return redirect(url_for("auth.login"))

    return render_template("register.html", form=form)


# ------------------------------------------------------
# LOGIN
# ------------------------------------------------------
@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit(login_rate_limit, methods=["POST"])
def login():
    if request.method == "POST":
        outcome = process_login(
            USER_PIPELINE,
            request.form.get("username"),
            request.form.get("password"),
            get_client_ip(),
        )
        return outcome_redirect(USER_PIPELINE, outcome)

    if current_user.is_authenticated:
        return redirect(url_for("blog.home"))

    error, message = login_page_messages()
    return render_template("login.html", error=error, message=message)


# ------------------------------------------------------
# LOGOUT
# ------------------------------------------------------
@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("auth.login", logout="true"))
