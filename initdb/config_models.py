# initdb/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for the bootstrap configuration.

Two groups of settings are defined here:

- ``MysqlProvisioningSettings`` reads the ``MYSQL_*`` environment variables
  that decide which accounts, databases and optional phases are provisioned.
- ``AppSettings`` holds the runtime settings of the bootstrap itself
  (binaries, directories, readiness budget, logging) and nests the
  provisioning settings under ``mysql``.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from initdb.config import (
    CLIENT_BINARY_DEFAULT,
    DATADIR_OWNER_DEFAULT,
    LOG_PREFIX_DEFAULT,
    READINESS_ATTEMPTS_DEFAULT,
    READINESS_INTERVAL_SECONDS_DEFAULT,
    SEED_SCRIPTS_DIR_DEFAULT,
    SERVER_COMMAND_DEFAULT,
    SYMBOLS,
    TZINFO_BINARY_DEFAULT,
    ZONEINFO_DIR_DEFAULT,
)

SYMBOLS_DEFAULT: Dict[str, str] = dict(SYMBOLS)

VALUE_FIELDS = (
    "root_password",
    "admin_user",
    "admin_password",
    "user",
    "password",
    "database",
)
FLAG_FIELDS = (
    "initdb_skip_tzinfo",
    "onetime_password",
    "random_root_password",
    "allow_empty_password",
    "random_admin_password",
)


class MysqlProvisioningSettings(BaseSettings):
    """Provisioning values read from MYSQL_* environment variables.

    An empty variable is the same as an absent one. Flags are presence
    flags: any non-empty value turns them on.
    """

    model_config = SettingsConfigDict(env_prefix="MYSQL_", extra="ignore")

    initdb_skip_tzinfo: bool = Field(
        default=False, description="Skip the timezone table import."
    )
    onetime_password: bool = Field(
        default=False,
        description="Expire admin passwords at the end of the bootstrap.",
    )

    root_password: Optional[str] = Field(
        default=None, description="Password for the root account."
    )
    random_root_password: bool = Field(
        default=False, description="Generate a random root password."
    )
    allow_empty_password: bool = Field(
        default=False, description="Allow a root account without password."
    )

    admin_user: Optional[str] = Field(
        default=None, description="Name of a secondary admin account."
    )
    admin_password: Optional[str] = Field(
        default=None, description="Password for the secondary admin account."
    )
    random_admin_password: bool = Field(
        default=False, description="Generate a random admin password."
    )

    user: Optional[str] = Field(
        default=None, description="Name of the standard application account."
    )
    password: Optional[str] = Field(
        default=None, description="Password of the standard account."
    )
    database: Optional[str] = Field(
        default=None, description="Database to create."
    )

    @field_validator(*VALUE_FIELDS, mode="before")
    @classmethod
    def _empty_is_unset(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_validator(*FLAG_FIELDS, mode="before")
    @classmethod
    def _presence_flag(cls, value: Any) -> Any:
        if value is None:
            return False
        if isinstance(value, str):
            return value != ""
        return value

    @property
    def wants_root_account(self) -> bool:
        return bool(
            self.root_password
            or self.allow_empty_password
            or self.random_root_password
        )

    @property
    def wants_standard_user(self) -> bool:
        return bool(self.user and self.password)


class AppSettings(BaseSettings):
    """Runtime settings of the bootstrap."""

    model_config = SettingsConfigDict(env_prefix="INITDB_", extra="ignore")

    server_command: List[str] = Field(
        default_factory=lambda: list(SERVER_COMMAND_DEFAULT),
        description="Server command line; extra options are appended to it.",
    )
    client_binary: str = Field(
        default=CLIENT_BINARY_DEFAULT, description="mysql client binary."
    )
    tzinfo_binary: str = Field(
        default=TZINFO_BINARY_DEFAULT,
        description="Timezone conversion utility.",
    )
    zoneinfo_dir: str = Field(
        default=ZONEINFO_DIR_DEFAULT,
        description="System timezone database directory.",
    )
    seed_scripts_dir: str = Field(
        default=SEED_SCRIPTS_DIR_DEFAULT,
        description="Directory of seed scripts run once after provisioning.",
    )
    readiness_attempts: int = Field(
        default=READINESS_ATTEMPTS_DEFAULT,
        ge=1,
        description="How many times the temporary server is polled.",
    )
    readiness_interval: float = Field(
        default=READINESS_INTERVAL_SECONDS_DEFAULT,
        ge=0,
        description="Seconds between readiness polls.",
    )
    datadir_owner: Optional[str] = Field(
        default=DATADIR_OWNER_DEFAULT,
        description="Owner given to the data directory when running as root.",
    )
    log_prefix: str = Field(
        default=LOG_PREFIX_DEFAULT, description="Prefix for log messages."
    )

    mysql: MysqlProvisioningSettings = Field(
        default_factory=MysqlProvisioningSettings
    )

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )
