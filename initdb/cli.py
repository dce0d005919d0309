# initdb/cli.py
# -*- coding: utf-8 -*-
"""
Command line entry point of the MySQL data directory bootstrap.
"""

import argparse
import logging
import os
import subprocess
import sys
from typing import List, Optional

import pymysql

from common.core_utils import DETAILED_LOG_FORMAT, setup_logging
from initdb.bootstrap import run_bootstrap
from initdb.config import LOG_PREFIX_DEFAULT, SCRIPT_VERSION
from initdb.config_loader import load_app_settings
from initdb.errors import InitdbError

logger = logging.getLogger("initdb")


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="mysql-initdb",
        description=(
            "Initialize and provision an empty MySQL data directory, then "
            "stop the temporary server. Provisioning is driven by MYSQL_* "
            "environment variables."
        ),
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {SCRIPT_VERSION}",
    )
    parser.add_argument(
        "--config", dest="config_file", help="Optional YAML settings file"
    )
    parser.add_argument(
        "--log-file", help="Also write the log to this file"
    )
    parser.add_argument(
        "--seed-dir", help="Directory holding seed scripts"
    )
    parser.add_argument(
        "--readiness-attempts",
        type=int,
        help="How many times to poll the temporary server",
    )
    parser.add_argument(
        "--skip-tzinfo",
        action="store_true",
        default=None,
        help="Skip the timezone import (same as MYSQL_INITDB_SKIP_TZINFO)",
    )
    parser.add_argument(
        "--exec",
        dest="exec_server",
        action="store_true",
        help="Replace this process with the server command once done",
    )
    parser.add_argument(
        "server_command",
        nargs=argparse.REMAINDER,
        help="Server command and options, after '--' (default: mysqld)",
    )
    parsed = parser.parse_args(args)
    if parsed.server_command and parsed.server_command[0] == "--":
        parsed.server_command = parsed.server_command[1:]
    return parsed


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_level = logging.DEBUG if args.verbose else logging.INFO
    log_format = DETAILED_LOG_FORMAT if args.verbose else None

    setup_logging(
        log_level=log_level,
        log_file=args.log_file,
        log_format_str=log_format,
        log_prefix=LOG_PREFIX_DEFAULT,
    )
    app_settings = load_app_settings(
        cli_args=args, config_file_path=args.config_file, current_logger=logger
    )
    if app_settings.log_prefix != LOG_PREFIX_DEFAULT:
        setup_logging(
            log_level=log_level,
            log_file=args.log_file,
            log_format_str=log_format,
            log_prefix=app_settings.log_prefix,
        )

    try:
        exit_code = run_bootstrap(app_settings, logger)
    except (
        InitdbError,
        subprocess.CalledProcessError,
        pymysql.err.MySQLError,
        OSError,
    ) as e:
        logger.critical(
            f"{app_settings.symbols.get('critical', '🔥')} MySQL init process failed: {e}"
        )
        return 1

    if exit_code == 0 and args.exec_server:
        command = app_settings.server_command
        logger.info(f"Handing over to: {' '.join(command)}")
        sys.stdout.flush()
        sys.stderr.flush()
        os.execvp(command[0], command)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
