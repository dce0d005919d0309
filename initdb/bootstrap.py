# initdb/bootstrap.py
# -*- coding: utf-8 -*-
"""
First-run bootstrap of the MySQL data directory.

The run is a fixed sequence of phases driven by the ``Orchestrator``:

    initialize storage -> start temporary server -> timezones ->
    purge accounts -> root -> admin -> database -> user ->
    fallback account -> seed scripts -> password expiry ->
    stop temporary server -> clear marker

Every phase is fatal. When the data directory already holds the system
schema the sequence is skipped entirely. The incomplete marker is checked
last in every case.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

from common.command_utils import log_message
from common.orchestrator import Orchestrator
from initdb.accounts import (
    ensure_fallback_account,
    expire_passwords,
    provision_admin,
    provision_database,
    provision_root,
    provision_user,
    purge_accounts,
)
from initdb.config_models import AppSettings
from initdb.context import ProvisioningContext
from initdb.datadir import (
    check_incomplete_marker,
    clear_marker,
    is_initialized,
    prepare_datadir,
)
from initdb.errors import IncompleteInitializationError
from initdb.seed_scripts import run_seed_scripts
from initdb.server import (
    TemporaryServer,
    ensure_binaries_available,
    initialize_insecure,
    probe_server_paths,
)
from initdb.timezones import import_timezones

module_logger = logging.getLogger(__name__)


def initialize_storage(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    context.marker = prepare_datadir(
        context.datadir, app_settings, context.logger
    )
    initialize_insecure(app_settings, context.logger)


def start_temporary_server(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    server = TemporaryServer(app_settings, context.socket_path, context.logger)
    server.start()
    context.server = server
    server.wait_until_ready(context.credentials, sleep=context.sleep)
    context.open_session()


def stop_temporary_server(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    context.close_session()
    if context.server is None:
        raise RuntimeError("Temporary server was never started")
    context.server.stop()
    context.server = None


def clear_incomplete_marker(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    if context.marker is None:
        raise RuntimeError("Incomplete marker was never written")
    clear_marker(context.marker, app_settings, context.logger)


PHASES: List[Tuple[str, Callable]] = [
    ("Initialize storage", initialize_storage),
    ("Start temporary server", start_temporary_server),
    ("Import timezones", import_timezones),
    ("Purge default accounts", purge_accounts),
    ("Provision root account", provision_root),
    ("Provision admin account", provision_admin),
    ("Provision database", provision_database),
    ("Provision standard user", provision_user),
    ("Ensure an account exists", ensure_fallback_account),
    ("Run seed scripts", run_seed_scripts),
    ("Expire passwords", expire_passwords),
    ("Stop temporary server", stop_temporary_server),
    ("Clear incomplete marker", clear_incomplete_marker),
]


def required_binaries(app_settings: AppSettings) -> List[str]:
    binaries = [app_settings.server_command[0], app_settings.client_binary]
    if not app_settings.mysql.initdb_skip_tzinfo:
        binaries.append(app_settings.tzinfo_binary)
    return binaries


def build_orchestrator(
    context: ProvisioningContext,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Orchestrator:
    orchestrator = Orchestrator(
        app_settings, current_logger or module_logger, context=context
    )
    for name, func in PHASES:
        orchestrator.add_task(name, func)
    return orchestrator


def run_bootstrap(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Initialize and provision the data directory if it is empty.

    Returns:
        int: 0 on success or when there was nothing to do, 1 when the
        incomplete marker is present at the end.

    Raises:
        SystemExit: A phase failed (exit status 1).
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    datadir, socket_path = probe_server_paths(app_settings, logger_to_use)

    if is_initialized(datadir):
        log_message(
            f"{symbols.get('info', 'ℹ️')} {datadir} already contains a database, skipping initialization",
            "info",
            logger_to_use,
            app_settings,
        )
    else:
        ensure_binaries_available(
            required_binaries(app_settings), app_settings, logger_to_use
        )
        context = ProvisioningContext(
            app_settings=app_settings,
            datadir=datadir,
            socket_path=socket_path,
            logger=logger_to_use,
            sleep=sleep,
        )
        build_orchestrator(context, app_settings, logger_to_use).run()
        log_message(
            f"{symbols.get('sparkles', '✨')} MySQL init process done. Ready for start up.",
            "info",
            logger_to_use,
            app_settings,
        )

    try:
        check_incomplete_marker(datadir)
    except IncompleteInitializationError as e:
        log_message(
            f"{symbols.get('critical', '🔥')} {e}",
            "critical",
            logger_to_use,
            app_settings,
        )
        return 1
    return 0
