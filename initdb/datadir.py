# initdb/datadir.py
# -*- coding: utf-8 -*-
"""
Data directory layout and the incomplete-initialization marker.

The marker is written as soon as the directory exists and removed only
after provisioning completed, so a crash anywhere in between leaves it
behind for the next run to refuse.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from common.command_utils import log_message, run_command
from initdb.config import INCOMPLETE_MARKER_FILENAME, SYSTEM_SCHEMA_DIRNAME
from initdb.config_models import AppSettings
from initdb.errors import IncompleteInitializationError

module_logger = logging.getLogger(__name__)


def marker_path(datadir: str) -> Path:
    return Path(datadir) / INCOMPLETE_MARKER_FILENAME


def is_initialized(datadir: str) -> bool:
    return (Path(datadir) / SYSTEM_SCHEMA_DIRNAME).is_dir()


def prepare_datadir(
    datadir: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Create the data directory, drop the marker into it and, when running as
    root, hand the directory to the configured owner.

    Returns:
        Path: The marker file path.
    """
    logger_to_use = current_logger if current_logger else module_logger
    datadir_path = Path(datadir)
    datadir_path.mkdir(parents=True, exist_ok=True)

    marker = marker_path(datadir)
    marker.touch()
    log_message(
        f"Created {datadir_path} with marker {marker.name}",
        "debug",
        logger_to_use,
        app_settings,
    )

    owner = app_settings.datadir_owner
    if owner and os.geteuid() == 0:
        run_command(
            ["chown", "-R", f"{owner}:", str(datadir_path)],
            app_settings,
            current_logger=logger_to_use,
        )
    return marker


def clear_marker(
    marker: Path,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    marker.unlink()
    log_message(
        f"Removed marker {marker}", "debug", logger_to_use, app_settings
    )


def check_incomplete_marker(datadir: str) -> None:
    """
    Raises:
        IncompleteInitializationError: The marker is present.
    """
    marker = marker_path(datadir)
    if marker.exists():
        raise IncompleteInitializationError(
            f"Initialization of {datadir} is incomplete ({marker} exists). "
            "A previous run did not finish; inspect the data directory and "
            "remove it before retrying."
        )
