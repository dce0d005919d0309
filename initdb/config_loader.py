# initdb/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the bootstrap.

Handles loading settings from Pydantic model defaults, environment
variables, an optional YAML file and command-line arguments, applying a
specific order of precedence:
1. Pydantic Model Defaults
2. Environment Variables (including ``MYSQL_*_FILE`` secrets)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from initdb.config_models import AppSettings, MysqlProvisioningSettings
from initdb.errors import ConfigurationError

module_logger = logging.getLogger(__name__)

# Settings that can be read from a file named by <VAR>_FILE (docker secrets).
FILE_ENV_VARIABLES: Dict[str, str] = {
    "root_password": "MYSQL_ROOT_PASSWORD",
    "admin_user": "MYSQL_ADMIN_USER",
    "admin_password": "MYSQL_ADMIN_PASSWORD",
    "user": "MYSQL_USER",
    "password": "MYSQL_PASSWORD",
    "database": "MYSQL_DATABASE",
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge ``overrides`` into ``source`` in place and return it.

    Nested dicts merge key by key (the ``mysql`` section of a YAML file only
    replaces the keys it names). ``None`` never overwrites an existing value,
    so unset CLI options leave lower layers alone.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def read_file_secrets(
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Resolve ``<VAR>_FILE`` variables into setting values.

    Trailing newlines of the file are dropped. Setting both ``VAR`` and
    ``VAR_FILE`` is an error.

    Raises:
        ConfigurationError: Both forms are set, or the file cannot be read.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, str] = {}
    for field_name, variable in FILE_ENV_VARIABLES.items():
        file_variable = f"{variable}_FILE"
        file_path = env.get(file_variable)
        if not file_path:
            continue
        if env.get(variable):
            raise ConfigurationError(
                f"Both {variable} and {file_variable} are set (but are exclusive)"
            )
        try:
            values[field_name] = Path(file_path).read_text(
                encoding="utf-8"
            ).rstrip("\n")
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read {file_variable} ({file_path}): {e}"
            ) from e
    return values


def validate_provisioning(
    settings: MysqlProvisioningSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Reject contradictory provisioning input and warn about ignored values.

    Raises:
        ConfigurationError: ``MYSQL_USER`` names the root account, or two
            requested accounts share a name.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if settings.user and settings.user.lower() == "root":
        raise ConfigurationError(
            'MYSQL_USER="root", MYSQL_USER and MYSQL_PASSWORD are for configuring '
            "a regular user and cannot be used for the root user. Use "
            "MYSQL_ROOT_PASSWORD, MYSQL_ALLOW_EMPTY_PASSWORD or "
            "MYSQL_RANDOM_ROOT_PASSWORD instead."
        )
    if (
        settings.admin_user
        and settings.admin_user.lower() == "root"
        and settings.wants_root_account
    ):
        raise ConfigurationError(
            'MYSQL_ADMIN_USER="root" clashes with the root account requested by '
            "MYSQL_ROOT_PASSWORD, MYSQL_ALLOW_EMPTY_PASSWORD or "
            "MYSQL_RANDOM_ROOT_PASSWORD. Choose another admin name."
        )
    if (
        settings.user
        and settings.admin_user
        and settings.user == settings.admin_user
    ):
        raise ConfigurationError(
            f'MYSQL_USER and MYSQL_ADMIN_USER both name "{settings.user}"; '
            "the standard user and the admin account must differ."
        )
    if bool(settings.user) != bool(settings.password):
        logger_to_use.warning(
            "Only one of MYSQL_USER and MYSQL_PASSWORD is set; the standard "
            "user will not be created."
        )
    if settings.admin_password and not settings.admin_user:
        logger_to_use.warning(
            "MYSQL_ADMIN_PASSWORD is set without MYSQL_ADMIN_USER and is ignored."
        )


def _load_yaml(
    config_file_path: str, logger_to_use: logging.Logger
) -> Dict[str, Any]:
    yaml_config_path = Path(config_file_path)
    if not (yaml_config_path.exists() and yaml_config_path.is_file()):
        logger_to_use.warning(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}
    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Could not parse YAML config file '{yaml_config_path}': {e}"
        ) from e
    except IOError as e:
        raise ConfigurationError(
            f"Could not read config file '{yaml_config_path}': {e}"
        ) from e

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise ConfigurationError(
            f"Config file '{yaml_config_path}' does not contain a YAML mapping."
        )
    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def _cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    cli_arg_dict = vars(cli_args)
    mapped: Dict[str, Any] = {}
    mysql_values: Dict[str, Any] = {}

    for cli_key, cli_value in cli_arg_dict.items():
        if cli_value is None:
            continue
        if cli_key == "seed_dir":
            mapped["seed_scripts_dir"] = str(cli_value)
        elif cli_key == "readiness_attempts":
            mapped["readiness_attempts"] = int(cli_value)
        elif cli_key == "server_command" and cli_value:
            mapped["server_command"] = list(cli_value)
        elif cli_key == "skip_tzinfo" and cli_value:
            mysql_values["initdb_skip_tzinfo"] = True

    if mysql_values:
        mapped["mysql"] = mysql_values
    return mapped


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppSettings:
    """
    Loads application settings with the following precedence:
    1. Pydantic Model Defaults.
    2. Environment Variables. ``MYSQL_*`` provisioning values are read by
       ``MysqlProvisioningSettings``, ``<VAR>_FILE`` secrets are resolved here.
    3. Values from the YAML configuration file, when one is given.
    4. Command-Line Arguments (highest precedence, overrides all else).

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to an optional YAML configuration file.
        current_logger: Optional logger to use instead of the module logger.
        environ: Environment used for ``*_FILE`` lookups, defaults to os.environ.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: The configuration is invalid.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        file_secrets = read_file_secrets(environ)
        settings_after_env_and_defaults = AppSettings(
            mysql=MysqlProvisioningSettings(**file_secrets)
        )
        current_values_dict = settings_after_env_and_defaults.model_dump()

        if config_file_path:
            current_values_dict = _deep_update(
                current_values_dict, _load_yaml(config_file_path, logger_to_use)
            )
        if cli_args:
            current_values_dict = _deep_update(
                current_values_dict, _cli_overrides(cli_args)
            )

        final_settings = AppSettings(**current_values_dict)
        validate_provisioning(final_settings.mysql, logger_to_use)
    except (ConfigurationError, ValidationError) as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    logger_to_use.debug(
        "Successfully loaded and validated application settings"
    )
    return final_settings
