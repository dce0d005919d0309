# initdb/context.py
# -*- coding: utf-8 -*-
"""
State carried from one bootstrap phase to the next.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from initdb.config import ANY_HOST
from initdb.config_models import AppSettings, MysqlProvisioningSettings
from initdb.mysql_client import (
    BOOTSTRAP_CREDENTIALS,
    AdminSession,
    Credentials,
)
from initdb.server import TemporaryServer

module_logger = logging.getLogger(__name__)


@dataclass
class ProvisioningContext:
    """One provisioning run.

    ``credentials`` starts as the password-less bootstrap root and is
    replaced by the first administrative account created; every later
    administrative command authenticates with it.
    """

    app_settings: AppSettings
    datadir: str
    socket_path: str
    logger: logging.Logger = field(default=module_logger)
    sleep: Callable[[float], None] = field(default=time.sleep)

    marker: Optional[Path] = None
    server: Optional[TemporaryServer] = None
    session: Optional[AdminSession] = None

    credentials: Credentials = BOOTSTRAP_CREDENTIALS
    credentials_host: Optional[str] = None
    user_created: bool = False
    onetime_password: bool = False

    def __post_init__(self):
        self.onetime_password = self.settings.onetime_password

    @property
    def settings(self) -> MysqlProvisioningSettings:
        return self.app_settings.mysql

    @property
    def has_admin_credentials(self) -> bool:
        return self.credentials_host is not None

    def open_session(self) -> AdminSession:
        self.session = AdminSession.open(
            self.socket_path, self.credentials, self.app_settings, self.logger
        )
        return self.session

    def close_session(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    def require_session(self) -> AdminSession:
        if self.session is None:
            raise RuntimeError("No administrative session is open")
        return self.session

    def record_admin_account(
        self, credentials: Credentials, host: str = ANY_HOST
    ) -> None:
        """
        Note that an admin account exists. The first one created becomes
        the bootstrap's own login, and the session is reopened with it.
        """
        self.user_created = True
        if self.has_admin_credentials:
            return
        self.credentials = credentials
        self.credentials_host = host
        self.close_session()
        self.open_session()
