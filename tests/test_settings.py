import pytest
from django.test import override_settings

from django_pgload.settings import get_setting


class TestGetSetting:
    def test_returns_default(self):
        assert get_setting("PSQL_BINARY") == "psql"

    def test_returns_user_override(self):
        with override_settings(DJANGO_PGLOAD={"PSQL_BINARY": "/usr/lib/postgresql/16/bin/psql"}):
            assert get_setting("PSQL_BINARY") == "/usr/lib/postgresql/16/bin/psql"

    def test_user_setting_takes_precedence(self):
        with override_settings(DJANGO_PGLOAD={"WIPE_DATABASE": True, "CAPTURE_STDERR": True}):
            assert get_setting("WIPE_DATABASE") is True
            assert get_setting("CAPTURE_STDERR") is True

    def test_missing_user_settings_falls_back(self):
        with override_settings():
            from django.conf import settings

            del settings.DJANGO_PGLOAD
            assert get_setting("SSH_BINARY") == "ssh"

    def test_unknown_setting_raises(self):
        with pytest.raises(KeyError, match="Unknown django-pgload setting"):
            get_setting("NONEXISTENT_SETTING")

    def test_defaults(self):
        assert get_setting("PSQL_FLAGS") == ["--no-password", "--set", "ON_ERROR_STOP=1"]
        assert get_setting("WIPE_DATABASE") is False
        assert get_setting("SSH_BINARY") == "ssh"
        assert get_setting("TUNNELS") == {}
        assert get_setting("CAPTURE_STDERR") is False
        assert get_setting("DESTINATIONS") == {}
        assert get_setting("DESTINATION_MAPPING") == {}

    def test_default_mutable_values_are_copied(self):
        flags: list[str] = get_setting("PSQL_FLAGS")  # type: ignore[assignment]
        tunnels: dict[str, dict] = get_setting("TUNNELS")  # type: ignore[assignment]

        flags.append("--echo-errors")
        tunnels["default"] = {"HOST": "bastion"}

        assert get_setting("PSQL_FLAGS") == ["--no-password", "--set", "ON_ERROR_STOP=1"]
        assert get_setting("TUNNELS") == {}

    @override_settings(DJANGO_PGLOAD={"TUNNELS": {"default": {"HOST": "bastion"}}})
    def test_user_mutable_values_are_copied(self):
        tunnels: dict[str, dict] = get_setting("TUNNELS")  # type: ignore[assignment]

        tunnels["default"]["HOST"] = "elsewhere"

        assert get_setting("TUNNELS") == {"default": {"HOST": "bastion"}}
