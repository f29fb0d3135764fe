import pytest

from blogapp.models.system_setting import SystemSetting, TYPE_INTEGER
from blogapp.settings_store import SettingsStore, settings_store


@pytest.mark.usefixtures("ctx")
class TestSettingsStore:

    def test_defaults_created_on_startup(self):
        assert settings_store.exists(SettingsStore.KEY_SITE_NAME)
        assert settings_store.max_login_attempts() == 5
        assert settings_store.lockout_duration_minutes() == 30
        assert settings_store.is_maintenance_mode() is False
        assert settings_store.is_registration_enabled() is True

    def test_initialize_defaults_is_idempotent(self):
        before = SystemSetting.query.count()
        assert settings_store.initialize_defaults() == 0
        assert SystemSetting.query.count() == before

    def test_initialize_defaults_keeps_existing_values(self):
        settings_store.set(SettingsStore.KEY_SITE_NAME, "My Blog", "root")
        settings_store.initialize_defaults()
        assert settings_store.site_name() == "My Blog"

    def test_initialize_defaults_recreates_missing_key(self):
        SystemSetting.query.filter_by(setting_key=SettingsStore.KEY_COMMENTS_ENABLED).delete()
        assert settings_store.initialize_defaults() == 1
        assert settings_store.is_comments_enabled() is True

    def test_get_string_missing_key_returns_default(self):
        assert settings_store.get_string("no_such_key") is None
        assert settings_store.get_string("no_such_key", "x") == "x"

    def test_int_round_trip(self):
        settings_store.set("answer", "42", "root", TYPE_INTEGER)
        assert settings_store.get_int("answer", 7) == 42

    def test_int_unparsable_falls_back(self):
        settings_store.set("answer", "not-a-number", "root", TYPE_INTEGER)
        assert settings_store.get_int("answer", 7) == 7

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("TRUE", True), (" True ", True),
        ("false", False), ("False", False),
        ("yes", None), ("1", None), ("", None),
    ])
    def test_bool_parsing(self, raw, expected):
        settings_store.set("flag", raw, "root")
        default = object()
        result = settings_store.get_bool("flag", default)
        if expected is None:
            assert result is default
        else:
            assert result is expected

    def test_set_updates_in_place(self):
        settings_store.set("color", "red", "root")
        settings_store.set("color", "blue", "editor")
        rows = SystemSetting.query.filter_by(setting_key="color").all()
        assert len(rows) == 1
        assert rows[0].setting_value == "blue"
        assert rows[0].updated_by == "editor"

    def test_write_visible_on_next_read(self):
        settings_store.set_int(SettingsStore.KEY_MAX_LOGIN_ATTEMPTS, 3, "root")
        assert settings_store.max_login_attempts() == 3

    def test_maintenance_toggle(self):
        settings_store.set_maintenance_mode(True, "root")
        assert settings_store.is_maintenance_mode() is True
        settings_store.set_maintenance_mode(False, "root")
        assert settings_store.is_maintenance_mode() is False

    def test_default_user_role_is_uppercased(self):
        settings_store.set(SettingsStore.KEY_DEFAULT_USER_ROLE, "admin", "root")
        assert settings_store.default_user_role() == "ADMIN"

    def test_as_dict(self):
        values = settings_store.as_dict()
        assert values[SettingsStore.KEY_MAX_LOGIN_ATTEMPTS] == "5"
