"""
Shared fixtures: an isolated app on in-memory SQLite, a test client, and
small helpers to seed users, posts and comments.

``app`` does not push an application context, so every test-client request
gets a fresh ``g`` (and with it a fresh Flask-Login user). Service-level
tests take ``ctx`` to work inside a context; route tests open one
explicitly when they need to seed or inspect the database.
"""

import pytest

from blogapp import create_app, db as _db
from blogapp.models.comment import Comment
from blogapp.models.post import Post
from blogapp.models.user import User, ROLE_ADMIN, ROLE_USER

PASSWORD = "s3cret-pass"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
        "CLEANUP_SCHEDULER_ENABLED": False,
        "SESSION_TYPE": "filesystem",
        "SESSION_FILE_DIR": str(tmp_path / "sessions"),
        "LOG_LEVEL": "WARNING",
    })
    yield app


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app
        _db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


def create_user(username="alice", role=ROLE_USER, password=PASSWORD, email=None, enabled=True):
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        role=role,
        is_enabled=enabled,
    )
    user.set_password(password)
    _db.session.add(user)
    _db.session.commit()
    return user


def create_post(author, title="Hello", published=True, featured=False):
    post = Post(title=title, content="Body", author_id=author.id,
                is_published=published, is_featured=featured)
    _db.session.add(post)
    _db.session.commit()
    return post


def create_comment(post, user, content="Nice post"):
    comment = Comment(post_id=post.id, user_id=user.id, content=content)
    _db.session.add(comment)
    _db.session.commit()
    return comment


@pytest.fixture
def admin(ctx):
    return create_user("root", role=ROLE_ADMIN)


@pytest.fixture
def seeded(app):
    """One admin ("root") and one regular user ("alice"); returns their ids."""
    with app.app_context():
        root = create_user("root", role=ROLE_ADMIN)
        alice = create_user("alice")
        ids = {"root": root.id, "alice": alice.id}
        _db.session.remove()
    return ids


def login(client, username, password=PASSWORD, admin=False, ip=None):
    headers = {"X-Forwarded-For": ip} if ip else {}
    url = "/admin/login" if admin else "/login"
    return client.post(url, data={"username": username, "password": password}, headers=headers)
