# blogapp/__init__.py

from flask import Flask, render_template, request
from flask_session import Session
from datetime import timedelta
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from dotenv import load_dotenv
import atexit
import logging
import os

# ======================================================
# Load environment first
# ======================================================
load_dotenv()

db = SQLAlchemy()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per hour"],
    storage_uri="memory://"
)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _env_flag(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _configure_logging(level_name):
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    root = logging.getLogger("blogapp")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)


def create_app(test_config=None):
    app = Flask(__name__)

    # ==================================================
    # Security / Keys
    # ==================================================
    app.secret_key = os.getenv("SECRET_KEY", "REPLACE_WITH_A_SECURE_RANDOM_KEY")

    # ==================================================
    # Database
    # ==================================================
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///blog.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("postgresql"):
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
            "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
            "pool_pre_ping": True,
            "pool_recycle": 1800,
        }

    # ==================================================
    # Session Persistence
    # ==================================================
    app.config["SESSION_TYPE"] = os.getenv("SESSION_TYPE", "filesystem")
    app.config["SESSION_PERMANENT"] = True
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=1)
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = False  # set to True when HTTPS enabled

    # ==================================================
    # CSRF + Rate Limiting
    # ==================================================
    app.config["WTF_CSRF_ENABLED"] = True
    app.config["LOGIN_RATE_LIMIT"] = os.getenv("LOGIN_RATE_LIMIT", "30 per minute")

    # ==================================================
    # Lockout housekeeping / display
    # ==================================================
    app.config["DISPLAY_TIMEZONE"] = os.getenv("DISPLAY_TIMEZONE", "UTC")
    app.config["CLEANUP_HOUR"] = int(os.getenv("CLEANUP_HOUR", "3"))
    app.config["CLEANUP_SCHEDULER_ENABLED"] = _env_flag("CLEANUP_SCHEDULER_ENABLED", True)
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    _configure_logging(app.config["LOG_LEVEL"])

    Session(app)
    csrf.init_app(app)
    limiter.init_app(app)
    db.init_app(app)

    # ==================================================
    # Blueprints
    # ==================================================
    from blogapp.auth import auth_bp, login_manager
    from blogapp.admin import admin_bp
    from blogapp.routes.blog import blog_bp
    from blogapp.cli import register_commands

    login_manager.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(blog_bp)
    register_commands(app)

    # ==================================================
    # Database Initialization (tables + default settings)
    # ==================================================
    from blogapp.settings_store import settings_store

    with app.app_context():
        db.create_all()
        settings_store.initialize_defaults()

    # ==================================================
    # Scheduled cleanup of the login attempt ledger
    # ==================================================
    if app.config["CLEANUP_SCHEDULER_ENABLED"] and not app.testing:
        from blogapp.login_guard import login_guard
        from blogapp.scheduler import CleanupScheduler

        scheduler = CleanupScheduler(app, login_guard, hour=app.config["CLEANUP_HOUR"])
        scheduler.start()
        app.extensions["cleanup_scheduler"] = scheduler
        atexit.register(scheduler.stop)

    # ==================================================
    # Global Template Variables (site name / maintenance)
    # ==================================================
    @app.context_processor
    def inject_globals():
        from flask_login import current_user

        role = "guest"
        if current_user.is_authenticated:
            role = (current_user.role or "USER").upper()

        return {
            "site_name": settings_store.site_name(),
            "is_maintenance_mode": settings_store.is_maintenance_mode(),
            "role": role,
        }

    # ==================================================
    # Maintenance mode gate
    # ==================================================
    @app.before_request
    def maintenance_gate():
        from flask_login import current_user

        path = request.path or "/"
        if path.startswith(("/admin", "/static", "/login", "/logout")):
            return None
        if not settings_store.is_maintenance_mode():
            return None
        if current_user.is_authenticated and current_user.is_admin():
            return None
        message = settings_store.get_string(
            settings_store.KEY_MAINTENANCE_MESSAGE,
            "The site is under maintenance. Please try again later.",
        )
        return render_template("maintenance.html", message=message), 503

    # ==================================================
    # Security Headers
    # ==================================================
    @app.after_request
    def apply_security_headers(response):
        csp = (
            "default-src 'self'; "
            "img-src 'self' data: https:; "
            "style-src 'self' 'unsafe-inline'; "
            "connect-src 'self';"
        )
        response.headers["Content-Security-Policy"] = csp
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # ==================================================
    # Basic Routes
    # ==================================================
    @app.route("/status")
    def status():
        return "Blog is running! Visit /admin/login to manage the site."

    return app
