import pytest

from blogapp import db
from blogapp.models.admin_log import AdminActionType, AdminLog
from blogapp.models.comment import Comment
from blogapp.models.post import Post
from blogapp.models.user import User
from blogapp.settings_store import SettingsStore, settings_store
from tests.conftest import create_comment, create_post, login


SETTINGS_FORM = {
    "site_name": "Blog",
    "site_description": "A place to write and share",
    "maintenance_message": "The site is under maintenance. Please try again later.",
    "default_user_role": "USER",
    "registration_enabled": "y",
    "comments_enabled": "y",
    "max_login_attempts": "5",
    "lockout_duration_minutes": "30",
}


@pytest.fixture
def admin_client(client, seeded):
    login(client, "root", admin=True)
    return client


def entries(app, action_type=None):
    with app.app_context():
        query = AdminLog.query
        if action_type is not None:
            query = query.filter_by(action_type=action_type)
        return [(e.action_type, e.action, e.details) for e in query.order_by(AdminLog.id).all()]


class TestPages:

    @pytest.mark.parametrize("path", [
        "/admin/", "/admin/dashboard", "/admin/users", "/admin/users/new",
        "/admin/posts", "/admin/comments", "/admin/settings",
        "/admin/logs", "/admin/logs?page=1&size=10",
        "/admin/login-attempts", "/admin/login-attempts?admin_only=1",
    ])
    def test_renders(self, admin_client, path):
        assert admin_client.get(path).status_code == 200

    def test_logs_page_lists_login(self, admin_client):
        assert b"Admin logged in" in admin_client.get("/admin/logs").data

    def test_user_detail(self, admin_client, seeded):
        assert admin_client.get(f"/admin/users/{seeded['alice']}").status_code == 200
        assert admin_client.get("/admin/users/999").status_code == 302


class TestUserActions:

    def test_cannot_delete_self(self, app, admin_client, seeded):
        resp = admin_client.post(f"/admin/users/{seeded['root']}/delete", follow_redirects=True)
        assert b"You cannot delete yourself." in resp.data
        with app.app_context():
            assert db.session.get(User, seeded["root"]) is not None
        assert entries(app, AdminActionType.USER_DELETE) == []

    def test_delete_user(self, app, admin_client, seeded):
        admin_client.post(f"/admin/users/{seeded['alice']}/delete")
        with app.app_context():
            assert db.session.get(User, seeded["alice"]) is None
        assert entries(app, AdminActionType.USER_DELETE) == [
            (AdminActionType.USER_DELETE, "User deleted: alice", "Target user: alice"),
        ]

    def test_toggle_and_role(self, app, admin_client, seeded):
        admin_client.post(f"/admin/users/{seeded['alice']}/toggle-enabled")
        admin_client.post(f"/admin/users/{seeded['alice']}/change-role", data={"role": "ADMIN"})
        with app.app_context():
            alice = db.session.get(User, seeded["alice"])
            assert alice.is_enabled is False
            assert alice.role == "ADMIN"

    def test_create_user(self, app, admin_client):
        resp = admin_client.post("/admin/users/new", data={
            "username": "dave",
            "email": "dave@blogmail.org",
            "password": "password1",
            "role": "USER",
        })
        assert resp.status_code == 302
        assert [e[0] for e in entries(app, AdminActionType.USER_CREATE)] == [AdminActionType.USER_CREATE]


class TestSettings:

    def test_unchanged_form_writes_no_entries(self, app, admin_client):
        admin_client.post("/admin/settings", data=SETTINGS_FORM)
        assert entries(app, AdminActionType.SETTINGS_UPDATE) == []

    def test_changes_are_stored_and_audited(self, app, admin_client):
        form = dict(SETTINGS_FORM, site_name="My Blog", max_login_attempts="3")
        form.pop("comments_enabled")
        resp = admin_client.post("/admin/settings", data=form)
        assert resp.status_code == 302

        with app.app_context():
            assert settings_store.site_name() == "My Blog"
            assert settings_store.max_login_attempts() == 3
            assert settings_store.is_comments_enabled() is False

        details = {e[2] for e in entries(app, AdminActionType.SETTINGS_UPDATE)}
        assert details == {
            "Setting: site_name, Old: Blog, New: My Blog",
            "Setting: max_login_attempts, Old: 5, New: 3",
            "Setting: comments_enabled, Old: true, New: false",
        }

    def test_maintenance_toggle_is_audited(self, app, admin_client):
        admin_client.post("/admin/settings", data=dict(SETTINGS_FORM, maintenance_mode="y"))
        admin_client.post("/admin/settings", data=SETTINGS_FORM)
        types = [e[0] for e in entries(app) if e[0].value.startswith("MAINTENANCE")]
        assert types == [AdminActionType.MAINTENANCE_MODE_ON, AdminActionType.MAINTENANCE_MODE_OFF]

    def test_invalid_form_is_rejected(self, app, admin_client):
        resp = admin_client.post("/admin/settings", data=dict(SETTINGS_FORM, max_login_attempts="0"))
        assert resp.status_code == 200
        with app.app_context():
            assert settings_store.max_login_attempts() == 5


class TestModerationRoutes:

    @pytest.fixture
    def post_id(self, app, seeded):
        with app.app_context():
            alice = db.session.get(User, seeded["alice"])
            post = create_post(alice, published=False)
            create_comment(post, alice)
            return post.id

    def test_publish_and_feature(self, app, admin_client, post_id):
        admin_client.post(f"/admin/posts/{post_id}/toggle-published")
        admin_client.post(f"/admin/posts/{post_id}/toggle-featured")
        with app.app_context():
            post = db.session.get(Post, post_id)
            assert post.is_published and post.is_featured
        assert [e[0] for e in entries(app) if e[0].value.startswith("POST")] == [
            AdminActionType.POST_PUBLISH, AdminActionType.POST_FEATURE,
        ]

    def test_delete_comment(self, app, admin_client, post_id):
        with app.app_context():
            comment_id = Comment.query.filter_by(post_id=post_id).one().id
        admin_client.post(f"/admin/comments/{comment_id}/delete")
        with app.app_context():
            assert Comment.query.count() == 0
        assert entries(app, AdminActionType.COMMENT_DELETE)[0][0] is AdminActionType.COMMENT_DELETE

    def test_delete_post(self, app, admin_client, post_id):
        admin_client.post(f"/admin/posts/{post_id}/delete")
        with app.app_context():
            assert Post.query.count() == 0

    def test_missing_post_flashes(self, admin_client):
        resp = admin_client.post("/admin/posts/999/delete", follow_redirects=True)
        assert b"Post not found." in resp.data


class TestPublicSite:

    @pytest.fixture
    def post_id(self, app, seeded):
        with app.app_context():
            alice = db.session.get(User, seeded["alice"])
            return create_post(alice, title="Visible post").id

    def test_home_lists_published(self, client, post_id):
        assert b"Visible post" in client.get("/").data

    def test_unpublished_hidden(self, app, client, seeded):
        with app.app_context():
            hidden_id = create_post(db.session.get(User, seeded["alice"]), published=False).id
        assert client.get(f"/post/{hidden_id}").status_code == 404

    def test_comment_requires_login(self, client, post_id):
        resp = client.post(f"/post/{post_id}", data={"content": "hi"})
        assert resp.status_code == 302
        assert "/login" in resp.headers["Location"]

    def test_comment(self, app, client, post_id):
        login(client, "alice")
        client.post(f"/post/{post_id}", data={"content": "hi"})
        with app.app_context():
            assert Comment.query.count() == 1

    def test_comments_disabled(self, app, client, post_id):
        with app.app_context():
            settings_store.set_bool(SettingsStore.KEY_COMMENTS_ENABLED, False, "root")
        login(client, "alice")
        client.post(f"/post/{post_id}", data={"content": "hi"})
        with app.app_context():
            assert Comment.query.count() == 0
