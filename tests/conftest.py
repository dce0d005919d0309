# tests/conftest.py
import logging
import os
from unittest.mock import MagicMock

import pytest

from initdb.config_models import AppSettings, MysqlProvisioningSettings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep MYSQL_* and INITDB_* variables of the host out of the tests."""
    for name in list(os.environ):
        if name.startswith(("MYSQL_", "INITDB_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_app_settings(tmp_path):
    """Build AppSettings with the given provisioning values."""

    def _make(**mysql_values):
        return AppSettings(
            seed_scripts_dir=str(tmp_path / "seeds"),
            readiness_attempts=3,
            readiness_interval=0,
            datadir_owner=None,
            mysql=MysqlProvisioningSettings(**mysql_values),
        )

    return _make


@pytest.fixture
def app_settings(make_app_settings):
    return make_app_settings()


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)
