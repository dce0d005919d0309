# tests/initdb/test_config_models.py
import pytest
from pydantic import ValidationError

from initdb.config import (
    READINESS_ATTEMPTS_DEFAULT,
    SEED_SCRIPTS_DIR_DEFAULT,
    SERVER_COMMAND_DEFAULT,
)
from initdb.config_models import AppSettings, MysqlProvisioningSettings


def test_provisioning_defaults():
    settings = MysqlProvisioningSettings()

    assert settings.root_password is None
    assert settings.random_root_password is False
    assert settings.allow_empty_password is False
    assert settings.initdb_skip_tzinfo is False
    assert settings.onetime_password is False
    assert settings.wants_root_account is False
    assert settings.wants_standard_user is False


def test_provisioning_reads_mysql_environment(monkeypatch):
    monkeypatch.setenv("MYSQL_ROOT_PASSWORD", "s3cret")
    monkeypatch.setenv("MYSQL_DATABASE", "app")
    monkeypatch.setenv("MYSQL_USER", "app_user")
    monkeypatch.setenv("MYSQL_PASSWORD", "app_pw")

    settings = MysqlProvisioningSettings()

    assert settings.root_password == "s3cret"
    assert settings.database == "app"
    assert settings.wants_root_account is True
    assert settings.wants_standard_user is True


def test_empty_values_count_as_unset(monkeypatch):
    monkeypatch.setenv("MYSQL_ROOT_PASSWORD", "")
    monkeypatch.setenv("MYSQL_USER", "")

    settings = MysqlProvisioningSettings()

    assert settings.root_password is None
    assert settings.user is None
    assert settings.wants_root_account is False


@pytest.mark.parametrize("value", ["1", "yes", "no", "false", "anything"])
def test_flags_are_presence_flags(monkeypatch, value):
    monkeypatch.setenv("MYSQL_RANDOM_ROOT_PASSWORD", value)

    settings = MysqlProvisioningSettings()

    assert settings.random_root_password is True
    assert settings.wants_root_account is True


def test_empty_flag_is_off(monkeypatch):
    monkeypatch.setenv("MYSQL_INITDB_SKIP_TZINFO", "")

    assert MysqlProvisioningSettings().initdb_skip_tzinfo is False


def test_standard_user_needs_both_values():
    assert MysqlProvisioningSettings(user="app").wants_standard_user is False
    assert (
        MysqlProvisioningSettings(password="pw").wants_standard_user is False
    )
    assert (
        MysqlProvisioningSettings(
            user="app", password="pw"
        ).wants_standard_user
        is True
    )


def test_app_settings_defaults():
    settings = AppSettings()

    assert settings.server_command == SERVER_COMMAND_DEFAULT
    assert settings.server_command is not SERVER_COMMAND_DEFAULT
    assert settings.seed_scripts_dir == SEED_SCRIPTS_DIR_DEFAULT
    assert settings.readiness_attempts == READINESS_ATTEMPTS_DEFAULT
    assert isinstance(settings.mysql, MysqlProvisioningSettings)
    assert "error" in settings.symbols


def test_app_settings_reads_initdb_environment(monkeypatch):
    monkeypatch.setenv("INITDB_CLIENT_BINARY", "/opt/mysql/bin/mysql")
    monkeypatch.setenv("INITDB_READINESS_ATTEMPTS", "5")

    settings = AppSettings()

    assert settings.client_binary == "/opt/mysql/bin/mysql"
    assert settings.readiness_attempts == 5


def test_readiness_attempts_must_be_positive():
    with pytest.raises(ValidationError):
        AppSettings(readiness_attempts=0)
