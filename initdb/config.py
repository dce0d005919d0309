# initdb/config.py
# -*- coding: utf-8 -*-
"""
Static constants for the MySQL data directory bootstrap.

Mutable runtime configuration (binaries, directories, provisioning values)
is handled by 'initdb/config_models.py' and 'initdb/config_loader.py'.
"""

SCRIPT_VERSION: str = "1.0.0"

LOG_PREFIX_DEFAULT: str = "[MYSQL-INITDB]"

# Presence of this subdirectory inside datadir means "already initialized".
SYSTEM_SCHEMA_DIRNAME: str = "mysql"
INCOMPLETE_MARKER_FILENAME: str = ".init_script_is_incomplete"

SERVER_COMMAND_DEFAULT: list[str] = ["mysqld"]
CLIENT_BINARY_DEFAULT: str = "mysql"
TZINFO_BINARY_DEFAULT: str = "mysql_tzinfo_to_sql"
ZONEINFO_DIR_DEFAULT: str = "/usr/share/zoneinfo"
SEED_SCRIPTS_DIR_DEFAULT: str = "/docker-entrypoint-initdb.d"
SOCKET_PATH_DEFAULT: str = "/var/run/mysqld/mysqld.sock"
DATADIR_OWNER_DEFAULT: str = "mysql"

READINESS_ATTEMPTS_DEFAULT: int = 30
READINESS_INTERVAL_SECONDS_DEFAULT: float = 1.0

RANDOM_PASSWORD_LENGTH: int = 32
ROOT_USERNAME: str = "root"
# Host part of every account created: reachable from anywhere.
ANY_HOST: str = "%"

# mysql_tzinfo_to_sql emits this text for the "Local time" zone; the
# time_zone_transition_type.Abbreviation column only holds 8 characters.
TZINFO_REJECTED_MESSAGE: str = "Local time zone must be set--see zic manual page"
TZINFO_REPLACEMENT: str = "FCTY"

SYMBOLS: dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "key": "🔑",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
}
