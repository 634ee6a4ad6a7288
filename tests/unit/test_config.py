"""Unit tests for settings and logging setup."""

import logging

import pytest

from booking_core.api.app import build_scheduling
from booking_core.config import Settings
from booking_core.core.logging import setup_logging
from booking_core.scheduling import PermissiveAuthZ, RoleBasedAuthZ


class TestSettings:

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("BOOKING_DEFAULT_SLOT_DURATION_MINUTES", "15")
        monkeypatch.setenv("BOOKING_AUTHZ_MODE", "role")

        settings = Settings(_env_file=None)

        assert settings.default_time_slot_config().slot_duration_minutes == 15
        assert settings.default_time_slot_config().provider_id is None
        assert settings.authz_mode == "role"

    @pytest.mark.parametrize(
        "origins,expected",
        [
            ("*", ["*"]),
            ("http://a.test, http://b.test,", ["http://a.test", "http://b.test"]),
        ],
    )
    def test_cors_origins(self, origins, expected):
        assert Settings(_env_file=None, cors_origins=origins).cors_origin_list == expected

    def test_authz_mode_selects_implementation(self):
        permissive = build_scheduling(Settings(_env_file=None))
        guarded = build_scheduling(Settings(_env_file=None, authz_mode="role"))

        assert isinstance(permissive.authz, PermissiveAuthZ)
        assert isinstance(guarded.authz, RoleBasedAuthZ)

    def test_sql_backend_needs_database(self):
        with pytest.raises(ValueError):
            build_scheduling(Settings(_env_file=None, repository_backend="sql"))


class TestLoggingSetup:

    def test_root_logger_level_and_single_handler(self):
        setup_logging("WARNING", "json")
        setup_logging("DEBUG", "json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert sum(type(h) is logging.StreamHandler for h in root.handlers) == 1
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
