# initdb/server.py
# -*- coding: utf-8 -*-
"""
Lifecycle of the server binary during the bootstrap: configuration
introspection, insecure initialization and the temporary socket-only
instance.
"""

import logging
import os
import signal
import subprocess
import tempfile
import time
from typing import Callable, Iterable, Optional, Tuple

from common.command_utils import (
    command_exists,
    log_message,
    run_command,
    start_background_command,
)
from initdb.config import SOCKET_PATH_DEFAULT
from initdb.config_models import AppSettings
from initdb.errors import (
    ConfigurationError,
    ReadinessTimeoutError,
    ServerStopError,
)
from initdb.mysql_client import Credentials, ping

module_logger = logging.getLogger(__name__)


def ensure_binaries_available(
    binaries: Iterable[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Fail early when a required engine tool is missing.

    Raises:
        FileNotFoundError: The first binary not found on PATH.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    for binary in binaries:
        if not command_exists(binary):
            log_message(
                f"{symbols.get('error', '❌')} Required command '{binary}' not found in PATH.",
                "error",
                logger_to_use,
                app_settings,
            )
            raise FileNotFoundError(f"Required command '{binary}' not found")


def parse_server_option(help_output: str, option: str) -> Optional[str]:
    """
    Extract an option value from ``mysqld --verbose --help`` output.

    The variables table prints one ``name value`` pair per line; the first
    matching line wins.
    """
    for line in help_output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == option:
            return parts[1]
    return None


def get_server_config(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Return the server's ``--verbose --help`` output for the configured
    server command.

    A throwaway ``--log-bin-index`` keeps the probe from touching the real
    binary log index.
    """
    logger_to_use = current_logger if current_logger else module_logger
    with tempfile.TemporaryDirectory(prefix="initdb_probe_") as tmp_dir:
        result = run_command(
            [
                *app_settings.server_command,
                "--verbose",
                "--help",
                f"--log-bin-index={os.path.join(tmp_dir, 'probe.index')}",
            ],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
            log_output=False,
        )
    return result.stdout or ""


def probe_server_paths(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Tuple[str, str]:
    """
    Discover the data directory and socket path the server is configured
    with.

    Returns:
        Tuple[str, str]: ``(datadir, socket_path)``.

    Raises:
        ConfigurationError: The server does not report a data directory.
    """
    logger_to_use = current_logger if current_logger else module_logger
    help_output = get_server_config(app_settings, logger_to_use)

    datadir = parse_server_option(help_output, "datadir")
    if not datadir:
        raise ConfigurationError(
            "Could not determine the server data directory from "
            f"'{' '.join(app_settings.server_command)} --verbose --help'"
        )
    socket_path = parse_server_option(help_output, "socket")
    if not socket_path:
        log_message(
            f"Server does not report a socket, using {SOCKET_PATH_DEFAULT}",
            "warning",
            logger_to_use,
            app_settings,
        )
        socket_path = SOCKET_PATH_DEFAULT
    log_message(
        f"Data directory: {datadir} (socket {socket_path})",
        "debug",
        logger_to_use,
        app_settings,
    )
    return datadir, socket_path


def initialize_insecure(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Lay down the system tables with a password-less root account."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    log_message(
        f"{symbols.get('gear', '⚙️')} Initializing database",
        "info",
        logger_to_use,
        app_settings,
    )
    run_command(
        [*app_settings.server_command, "--initialize-insecure"],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Database initialized",
        "info",
        logger_to_use,
        app_settings,
    )


class TemporaryServer:
    """Socket-only server instance used while provisioning."""

    def __init__(
        self,
        app_settings: AppSettings,
        socket_path: str,
        current_logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.socket_path = socket_path
        self.logger = current_logger or module_logger
        self.process: Optional[subprocess.Popen] = None

    @property
    def command(self) -> list[str]:
        return [
            *self.app_settings.server_command,
            "--skip-networking",
            f"--socket={self.socket_path}",
        ]

    def start(self) -> None:
        self.process = start_background_command(
            self.command, self.app_settings, self.logger
        )

    def wait_until_ready(
        self,
        credentials: Credentials,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Poll ``SELECT 1`` until the server answers.

        Raises:
            ReadinessTimeoutError: The polling budget ran out, or the server
                process exited while starting.
        """
        if self.process is None:
            raise RuntimeError("Temporary server has not been started")

        attempts = self.app_settings.readiness_attempts
        # One attempt must not outlast the pause between attempts.
        connect_timeout = max(1.0, self.app_settings.readiness_interval)
        for attempt in range(1, attempts + 1):
            returncode = self.process.poll()
            if returncode is not None:
                raise ReadinessTimeoutError(
                    f"MySQL init process failed: server exited with code {returncode} while starting."
                )
            if ping(self.socket_path, credentials, connect_timeout):
                log_message(
                    f"Temporary server is accepting connections on {self.socket_path}",
                    "info",
                    self.logger,
                    self.app_settings,
                )
                return
            log_message(
                f"MySQL init process in progress... ({attempt}/{attempts})",
                "info",
                self.logger,
                self.app_settings,
            )
            sleep(self.app_settings.readiness_interval)

        raise ReadinessTimeoutError(
            f"MySQL init process failed: no answer after {attempts} attempts."
        )

    def stop(self) -> None:
        """
        Send SIGTERM and wait for a clean exit.

        Raises:
            ServerStopError: Signalling or waiting failed, or the server
                exited non-zero.
        """
        if self.process is None:
            raise ServerStopError("Temporary server is not running")

        log_message(
            f"Stopping temporary server (pid {self.process.pid})",
            "info",
            self.logger,
            self.app_settings,
        )
        try:
            self.process.send_signal(signal.SIGTERM)
            returncode = self.process.wait()
        except OSError as e:
            raise ServerStopError(
                f"MySQL init process failed: could not stop server: {e}"
            ) from e

        if returncode != 0:
            raise ServerStopError(
                f"MySQL init process failed: server exited with code {returncode}."
            )
        self.process = None
