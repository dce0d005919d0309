# initdb/mysql_client.py
# -*- coding: utf-8 -*-
"""
Client side of the temporary server: credentials, the administrative
session used for provisioning statements, and the ``mysql`` command line
client used to feed SQL scripts.

Account names, hosts and passwords are always bound as statement
parameters. Identifiers (database names) cannot be bound, they go through
``quote_identifier``.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import pymysql

from common.command_utils import log_message, run_command
from initdb.config import ROOT_USERNAME
from initdb.config_models import AppSettings

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Login used by the bootstrap itself. The password never shows in repr."""

    username: str
    password: str = field(default="", repr=False)


# Account left by --initialize-insecure: root without password, socket only.
BOOTSTRAP_CREDENTIALS = Credentials(ROOT_USERNAME, "")


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, doubling embedded backticks."""
    if not name:
        raise ValueError("Identifier must not be empty")
    return "`" + name.replace("`", "``") + "`"


def client_environment(
    credentials: Credentials, base_env: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """
    Environment for ``mysql`` client processes.

    The password travels in ``MYSQL_PWD`` so it never appears on a command
    line or in the logged invocation.
    """
    env = dict(os.environ if base_env is None else base_env)
    if credentials.password:
        env["MYSQL_PWD"] = credentials.password
    else:
        env.pop("MYSQL_PWD", None)
    return env


def client_command(
    app_settings: AppSettings,
    socket_path: str,
    credentials: Credentials,
    database: Optional[str] = None,
) -> list[str]:
    command = [
        app_settings.client_binary,
        "--protocol=socket",
        "--host=localhost",
        f"--socket={socket_path}",
        f"--user={credentials.username}",
    ]
    if database:
        command.append(f"--database={database}")
    return command


def run_client_script(
    app_settings: AppSettings,
    socket_path: str,
    credentials: Credentials,
    script: bytes,
    database: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Pipe a SQL script into the ``mysql`` command line client.

    Raises:
        subprocess.CalledProcessError: The client exited non-zero.
    """
    run_command(
        client_command(app_settings, socket_path, credentials, database),
        app_settings,
        capture_output=True,
        text=False,
        cmd_input=script,
        current_logger=current_logger,
        env=client_environment(credentials),
    )


def ping(
    socket_path: str, credentials: Credentials, connect_timeout: float = 1.0
) -> bool:
    """Return True when the server answers ``SELECT 1`` on the socket."""
    try:
        connection = pymysql.connect(
            unix_socket=socket_path,
            user=credentials.username,
            password=credentials.password,
            connect_timeout=connect_timeout,
        )
    except pymysql.err.MySQLError:
        return False
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return True
    except pymysql.err.MySQLError:
        return False
    finally:
        connection.close()


class AdminSession:
    """Administrative connection to the temporary server.

    Binary logging is disabled for the session so that provisioning does
    not end up in a replication stream.
    """

    def __init__(
        self,
        connection,
        credentials: Credentials,
        app_settings: Optional[AppSettings] = None,
        current_logger: Optional[logging.Logger] = None,
    ):
        self.connection = connection
        self.credentials = credentials
        self.app_settings = app_settings
        self.logger = current_logger or module_logger

    @classmethod
    def open(
        cls,
        socket_path: str,
        credentials: Credentials,
        app_settings: Optional[AppSettings] = None,
        current_logger: Optional[logging.Logger] = None,
    ) -> "AdminSession":
        connection = pymysql.connect(
            unix_socket=socket_path,
            user=credentials.username,
            password=credentials.password,
            charset="utf8mb4",
            autocommit=True,
        )
        session = cls(connection, credentials, app_settings, current_logger)
        session.execute("SET @@SESSION.SQL_LOG_BIN=0")
        return session

    def execute(
        self, statement: str, params: Optional[Sequence[str]] = None
    ) -> None:
        """Run one statement. Parameter values are never logged."""
        log_message(
            f"   SQL: {statement}", "debug", self.logger, self.app_settings
        )
        with self.connection.cursor() as cursor:
            cursor.execute(statement, params)

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None
