# initdb/timezones.py
# -*- coding: utf-8 -*-
"""
Timezone table import into the ``mysql`` system schema.
"""

from common.command_utils import log_message, run_command
from initdb.config import TZINFO_REJECTED_MESSAGE, TZINFO_REPLACEMENT
from initdb.config_models import AppSettings
from initdb.context import ProvisioningContext
from initdb.mysql_client import run_client_script


def patch_tzinfo_sql(sql: bytes) -> bytes:
    return sql.replace(
        TZINFO_REJECTED_MESSAGE.encode(), TZINFO_REPLACEMENT.encode()
    )


def import_timezones(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    if context.settings.initdb_skip_tzinfo:
        log_message(
            "MYSQL_INITDB_SKIP_TZINFO is set, skipping timezone import",
            "info",
            context.logger,
            app_settings,
        )
        return

    log_message(
        f"{app_settings.symbols.get('gear', '⚙️')} Loading timezones from {app_settings.zoneinfo_dir}",
        "info",
        context.logger,
        app_settings,
    )
    result = run_command(
        [app_settings.tzinfo_binary, app_settings.zoneinfo_dir],
        app_settings,
        capture_output=True,
        text=False,
        current_logger=context.logger,
        log_output=False,
    )
    skipped = (result.stderr or b"").decode("utf-8", errors="replace").strip()
    if skipped:
        log_message(
            f"{app_settings.tzinfo_binary}: {skipped}",
            "warning",
            context.logger,
            app_settings,
        )
    run_client_script(
        app_settings,
        context.socket_path,
        context.credentials,
        patch_tzinfo_sql(result.stdout),
        database="mysql",
        current_logger=context.logger,
    )
