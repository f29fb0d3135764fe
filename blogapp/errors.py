# blogapp/errors.py
"""
Error types raised by account and moderation operations.

Routes catch ``BlogError``, flash ``str(exc)`` and redirect; nothing here
carries an error code, only a human-readable message.
"""


class BlogError(Exception):
    """Base class for recoverable, user-facing failures."""

    category = "danger"


class NotFoundError(BlogError):
    """Referenced user, post or comment does not exist."""

    category = "warning"


class ValidationError(BlogError):
    """Input rejected before any write happened."""


class AuthorizationDenied(BlogError):
    """Actor lacks rights over the target; nothing was changed."""
