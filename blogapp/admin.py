# blogapp/admin.py

from flask import (
    Blueprint, render_template, request, redirect,
    url_for, flash, current_app
)
from flask_login import current_user, logout_user
from datetime import timezone
from zoneinfo import ZoneInfo
import logging
import math

from blogapp import limiter
from blogapp import accounts, moderation
from blogapp.audit import audit_log
from blogapp.auth import (
    ADMIN_PIPELINE, admin_required, get_client_ip, login_page_messages,
    login_rate_limit, outcome_redirect, process_login,
)
from blogapp.errors import BlogError
from blogapp.forms import CreateUserForm, SettingsForm
from blogapp.ledger import ledger
from blogapp.models.admin_log import TARGET_POST, TARGET_USER
from blogapp.models.comment import Comment
from blogapp.models.post import Post
from blogapp.models.user import User, ROLES
from blogapp.settings_store import settings_store

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/admin")


# ======================================================
# HELPERS
# ======================================================
def _page_args(default_size):
    page = max(0, request.args.get("page", 0, type=int) or 0)
    size = request.args.get("size", default_size, type=int) or default_size
    return page, max(1, min(size, 200))


def _to_display_time(ts):
    if ts is None:
        return None
    zone = ZoneInfo(current_app.config.get("DISPLAY_TIMEZONE", "UTC") or "UTC")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(zone).strftime("%Y-%m-%d %I:%M:%S %p")


def _admin():
    return current_user._get_current_object()


# ======================================================
# ADMIN LOGIN / LOGOUT
# ======================================================
@admin_bp.route("/login", methods=["GET", "POST"])
@limiter.limit(login_rate_limit, methods=["POST"])
def login():
    if request.method == "POST":
        outcome = process_login(
            ADMIN_PIPELINE,
            request.form.get("username"),
            request.form.get("password"),
            get_client_ip(),
        )
        return outcome_redirect(ADMIN_PIPELINE, outcome)

    if current_user.is_authenticated and current_user.is_admin():
        return redirect(url_for("admin_bp.dashboard"))

    error, message = login_page_messages()
    return render_template("admin/login.html", error=error, message=message)


@admin_bp.route("/logout")
def logout():
    if current_user.is_authenticated:
        if current_user.is_admin():
            audit_log.log_logout(_admin(), get_client_ip())
        logout_user()
    return redirect(url_for("admin_bp.login", logout="true"))


# ======================================================
# DASHBOARD
# ======================================================
@admin_bp.route("/")
@admin_bp.route("/dashboard")
@admin_required
def dashboard():
    stats = {
        "users": User.query.count(),
        "posts": Post.query.count(),
        "published_posts": Post.query.filter_by(is_published=True).count(),
        "comments": Comment.query.count(),
        "today_logins": audit_log.today_login_count(),
    }
    return render_template(
        "admin/dashboard.html",
        stats=stats,
        recent_logs=audit_log.recent_entries(),
        daily_counts=audit_log.daily_counts(),
        active_page="dashboard",
    )


# ======================================================
# USER MANAGEMENT
# ======================================================
@admin_bp.route("/users")
@admin_required
def users():
    page, size = _page_args(20)
    search = (request.args.get("search") or "").strip() or None
    items, total = accounts.list_users(page, size, search)
    return render_template(
        "admin/users.html",
        users=items,
        current_page=page,
        total_pages=math.ceil(total / size) if total else 0,
        total=total,
        search=search or "",
        active_page="users",
    )


@admin_bp.route("/users/new", methods=["GET", "POST"])
@admin_required
def user_new():
    form = CreateUserForm()
    if form.validate_on_submit():
        try:
            user = accounts.create_user(
                _admin(),
                form.username.data, form.email.data, form.password.data,
                form.role.data, get_client_ip(),
            )
        except BlogError as exc:
            flash(str(exc), exc.category)
            return render_template("admin/user_new.html", form=form, active_page="users")
        flash("User created successfully.", "success")
        return redirect(url_for("admin_bp.user_detail", user_id=user.id))

    return render_template("admin/user_new.html", form=form, active_page="users")


@admin_bp.route("/users/<int:user_id>")
@admin_required
def user_detail(user_id):
    try:
        user = accounts.get_user(user_id)
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("admin_bp.users"))
    return render_template(
        "admin/user_detail.html",
        user=user,
        roles=ROLES,
        user_logs=audit_log.entries_by_target(TARGET_USER, user_id),
        active_page="users",
    )


@admin_bp.route("/users/<int:user_id>/email", methods=["POST"])
@admin_required
def user_email(user_id):
    try:
        accounts.update_email(_admin(), user_id, request.form.get("email"), get_client_ip())
        flash("Email updated successfully.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.user_detail", user_id=user_id))


@admin_bp.route("/users/<int:user_id>/reset-password", methods=["POST"])
@admin_required
def user_reset_password(user_id):
    try:
        accounts.reset_password(_admin(), user_id, request.form.get("new_password"), get_client_ip())
        flash("Password reset successfully.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.user_detail", user_id=user_id))


@admin_bp.route("/users/<int:user_id>/toggle-enabled", methods=["POST"])
@admin_required
def user_toggle_enabled(user_id):
    try:
        user = accounts.toggle_enabled(_admin(), user_id, get_client_ip())
        flash("User enabled." if user.is_enabled else "User disabled.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.user_detail", user_id=user_id))


@admin_bp.route("/users/<int:user_id>/change-role", methods=["POST"])
@admin_required
def user_change_role(user_id):
    try:
        accounts.change_role(_admin(), user_id, request.form.get("role"), get_client_ip())
        flash("User role changed.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.user_detail", user_id=user_id))


@admin_bp.route("/users/<int:user_id>/delete", methods=["POST"])
@admin_required
def user_delete(user_id):
    try:
        accounts.delete_user(_admin(), user_id, get_client_ip())
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("admin_bp.user_detail", user_id=user_id))
    flash("User deleted successfully.", "success")
    return redirect(url_for("admin_bp.users"))


# ======================================================
# POST MANAGEMENT
# ======================================================
@admin_bp.route("/posts")
@admin_required
def posts():
    page, size = _page_args(20)
    items, total = moderation.list_posts(page, size)
    return render_template(
        "admin/posts.html",
        posts=items,
        current_page=page,
        total_pages=math.ceil(total / size) if total else 0,
        active_page="posts",
    )


@admin_bp.route("/posts/<int:post_id>")
@admin_required
def post_detail(post_id):
    try:
        post = moderation.get_post(post_id)
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("admin_bp.posts"))
    return render_template(
        "admin/post_detail.html",
        post=post,
        post_logs=audit_log.entries_by_target(TARGET_POST, post_id),
        active_page="posts",
    )


@admin_bp.route("/posts/<int:post_id>/edit", methods=["POST"])
@admin_required
def post_edit(post_id):
    try:
        moderation.update_post(_admin(), post_id, request.form.get("title"),
                               request.form.get("content"), get_client_ip())
        flash("Post updated successfully.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.post_detail", post_id=post_id))


@admin_bp.route("/posts/<int:post_id>/toggle-published", methods=["POST"])
@admin_required
def post_toggle_published(post_id):
    try:
        post = moderation.toggle_published(_admin(), post_id, get_client_ip())
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("admin_bp.posts"))
    flash("Post published." if post.is_published else "Post unpublished.", "success")
    return redirect(url_for("admin_bp.post_detail", post_id=post_id))


@admin_bp.route("/posts/<int:post_id>/toggle-featured", methods=["POST"])
@admin_required
def post_toggle_featured(post_id):
    try:
        post = moderation.toggle_featured(_admin(), post_id, get_client_ip())
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("admin_bp.posts"))
    flash("Post featured." if post.is_featured else "Post removed from featured.", "success")
    return redirect(url_for("admin_bp.post_detail", post_id=post_id))


@admin_bp.route("/posts/<int:post_id>/delete", methods=["POST"])
@admin_required
def post_delete(post_id):
    try:
        moderation.delete_post(_admin(), post_id, get_client_ip())
        flash("Post deleted successfully.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.posts"))


# ======================================================
# COMMENT MANAGEMENT
# ======================================================
@admin_bp.route("/comments")
@admin_required
def comments():
    return render_template(
        "admin/comments.html",
        comments=moderation.list_comments(),
        active_page="comments",
    )


@admin_bp.route("/comments/<int:comment_id>/delete", methods=["POST"])
@admin_required
def comment_delete(comment_id):
    try:
        moderation.delete_comment(_admin(), comment_id, get_client_ip())
        flash("Comment deleted.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("admin_bp.comments"))


# ======================================================
# SITE SETTINGS
# ======================================================
def _settings_form_defaults():
    return {
        "site_name": settings_store.site_name(),
        "site_description": settings_store.get_string(settings_store.KEY_SITE_DESCRIPTION, ""),
        "maintenance_mode": settings_store.is_maintenance_mode(),
        "maintenance_message": settings_store.get_string(settings_store.KEY_MAINTENANCE_MESSAGE, ""),
        "default_user_role": settings_store.default_user_role(),
        "registration_enabled": settings_store.is_registration_enabled(),
        "comments_enabled": settings_store.is_comments_enabled(),
        "max_login_attempts": settings_store.max_login_attempts(),
        "lockout_duration_minutes": settings_store.lockout_duration_minutes(),
    }


def save_settings(admin, form, ip):
    """Write the submitted form through the settings store; audit each change."""
    username = admin.username
    store = settings_store

    string_fields = (
        (store.KEY_SITE_NAME, (form.site_name.data or "").strip()),
        (store.KEY_SITE_DESCRIPTION, form.site_description.data or ""),
        (store.KEY_MAINTENANCE_MESSAGE, form.maintenance_message.data or ""),
        (store.KEY_DEFAULT_USER_ROLE, form.default_user_role.data),
    )
    for key, new_value in string_fields:
        old_value = store.get_string(key)
        if old_value != new_value:
            store.set(key, new_value, username)
            audit_log.log_settings_update(admin, key, old_value, new_value, ip)

    was_maintenance = store.is_maintenance_mode()
    if was_maintenance != bool(form.maintenance_mode.data):
        store.set_maintenance_mode(bool(form.maintenance_mode.data), username)
        audit_log.log_maintenance_mode(admin, bool(form.maintenance_mode.data), ip)

    bool_fields = (
        (store.KEY_REGISTRATION_ENABLED, store.is_registration_enabled(), bool(form.registration_enabled.data)),
        (store.KEY_COMMENTS_ENABLED, store.is_comments_enabled(), bool(form.comments_enabled.data)),
    )
    for key, old_value, new_value in bool_fields:
        if old_value != new_value:
            store.set_bool(key, new_value, username)
            audit_log.log_settings_update(admin, key, str(old_value).lower(), str(new_value).lower(), ip)

    int_fields = (
        (store.KEY_MAX_LOGIN_ATTEMPTS, store.max_login_attempts(), form.max_login_attempts.data),
        (store.KEY_LOCKOUT_DURATION_MINUTES, store.lockout_duration_minutes(), form.lockout_duration_minutes.data),
    )
    for key, old_value, new_value in int_fields:
        if old_value != new_value:
            store.set_int(key, new_value, username)
            audit_log.log_settings_update(admin, key, old_value, new_value, ip)


@admin_bp.route("/settings", methods=["GET", "POST"])
@admin_required
def settings():
    if request.method == "POST":
        form = SettingsForm()
        if form.validate_on_submit():
            save_settings(_admin(), form, get_client_ip())
            flash("Settings saved successfully.", "success")
            return redirect(url_for("admin_bp.settings"))
        for field_errors in form.errors.values():
            for err in field_errors:
                flash(err, "danger")
    else:
        form = SettingsForm(data=_settings_form_defaults())

    return render_template(
        "admin/settings.html",
        form=form,
        settings=settings_store.all(),
        active_page="settings",
    )


# ======================================================
# AUDIT LOG
# ======================================================
@admin_bp.route("/logs")
@admin_required
def logs():
    page, size = _page_args(50)
    logs_page = audit_log.entries_page(page, size)
    return render_template(
        "admin/logs.html",
        logs=logs_page.items,
        current_page=logs_page.page,
        total_pages=logs_page.pages,
        total_elements=logs_page.total,
        active_page="logs",
    )


# ======================================================
# LOGIN ATTEMPTS
# ======================================================
@admin_bp.route("/login-attempts")
@admin_required
def login_attempts():
    admin_only = request.args.get("admin_only") == "1"
    formatted = [
        {
            "username": attempt.username,
            "ip": attempt.ip_address,
            "status": "success" if attempt.success else "failed",
            "area": "admin" if attempt.is_admin_login else "site",
            "timestamp": _to_display_time(attempt.attempt_time),
        }
        for attempt in ledger.recent_attempts(limit=200, admin_only=admin_only)
    ]
    return render_template(
        "admin/login_attempts.html",
        attempts=formatted,
        admin_only=admin_only,
        active_page="attempts",
    )
