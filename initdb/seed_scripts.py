# initdb/seed_scripts.py
# -*- coding: utf-8 -*-
"""
Seed scripts run once against the freshly provisioned instance.

Every entry of the seed directory is classified into exactly one
``SeedKind`` and the entries run in lexical filename order. The first
failure aborts the run.
"""

import gzip
import logging
import os
import subprocess
import zlib
from enum import Enum
from pathlib import Path
from typing import List

from common.command_utils import log_message, run_command
from initdb.config_models import AppSettings
from initdb.context import ProvisioningContext
from initdb.errors import SeedScriptError
from initdb.mysql_client import client_environment, run_client_script

module_logger = logging.getLogger(__name__)


class SeedKind(Enum):
    SHELL = "shell"
    SQL = "sql"
    COMPRESSED_SQL = "compressed_sql"
    UNRECOGNIZED = "unrecognized"


def classify_seed_file(path: Path) -> SeedKind:
    if not path.is_file():
        return SeedKind.UNRECOGNIZED
    name = path.name
    if name.endswith(".sh"):
        return SeedKind.SHELL
    if name.endswith(".sql.gz"):
        return SeedKind.COMPRESSED_SQL
    if name.endswith(".sql"):
        return SeedKind.SQL
    return SeedKind.UNRECOGNIZED


def list_seed_files(seed_dir: str) -> List[Path]:
    directory = Path(seed_dir)
    if not directory.is_dir():
        return []
    return sorted(directory.iterdir(), key=lambda p: p.name)


def _shell_environment(context: ProvisioningContext) -> dict:
    env = client_environment(context.credentials)
    env["INITDB_DATADIR"] = context.datadir
    env["INITDB_SOCKET"] = context.socket_path
    env["INITDB_ADMIN_USER"] = context.credentials.username
    return env


def _run_shell(path: Path, context: ProvisioningContext) -> None:
    command = [str(path)] if os.access(path, os.X_OK) else ["bash", str(path)]
    try:
        run_command(
            command,
            context.app_settings,
            current_logger=context.logger,
            env=_shell_environment(context),
        )
    except subprocess.CalledProcessError as e:
        raise SeedScriptError(str(path), f"exit code {e.returncode}") from e


def _run_sql(path: Path, script: bytes, context: ProvisioningContext) -> None:
    try:
        run_client_script(
            context.app_settings,
            context.socket_path,
            context.credentials,
            script,
            database=context.settings.database,
            current_logger=context.logger,
        )
    except subprocess.CalledProcessError as e:
        raise SeedScriptError(str(path), f"exit code {e.returncode}") from e


def _decompress(path: Path) -> bytes:
    try:
        return gzip.decompress(path.read_bytes())
    except (OSError, EOFError, zlib.error) as e:
        raise SeedScriptError(str(path), f"cannot decompress: {e}") from e


def run_seed_file(
    path: Path, kind: SeedKind, context: ProvisioningContext
) -> None:
    app_settings = context.app_settings
    if kind is SeedKind.UNRECOGNIZED:
        log_message(
            f"Ignoring {path}", "info", context.logger, app_settings
        )
        return

    log_message(
        f"{app_settings.symbols.get('step', '➡️')} Running {path}",
        "info",
        context.logger,
        app_settings,
    )
    if kind is SeedKind.SHELL:
        _run_shell(path, context)
    elif kind is SeedKind.SQL:
        _run_sql(path, path.read_bytes(), context)
    elif kind is SeedKind.COMPRESSED_SQL:
        _run_sql(path, _decompress(path), context)


def run_seed_scripts(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    seed_files = list_seed_files(app_settings.seed_scripts_dir)
    if not seed_files:
        log_message(
            f"No seed scripts in {app_settings.seed_scripts_dir}",
            "debug",
            context.logger,
            app_settings,
        )
        return
    classified = [(path, classify_seed_file(path)) for path in seed_files]
    if not context.has_admin_credentials:
        sql_files = [
            path
            for path, kind in classified
            if kind in (SeedKind.SQL, SeedKind.COMPRESSED_SQL)
        ]
        if sql_files:
            raise SeedScriptError(
                str(sql_files[0]),
                "no administrative account was created to run SQL seeds as. "
                "Set MYSQL_ROOT_PASSWORD, MYSQL_RANDOM_ROOT_PASSWORD or "
                "MYSQL_ADMIN_USER",
            )
    for path, kind in classified:
        run_seed_file(path, kind, context)
