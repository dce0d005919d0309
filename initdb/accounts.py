# initdb/accounts.py
# -*- coding: utf-8 -*-
"""
Account and database provisioning phases.

Each phase takes the shared ``ProvisioningContext`` and the settings, and
is a no-op (with a log line) when its trigger is not configured.
"""

import logging
import secrets
import string
from typing import Optional

from common.command_utils import log_message
from initdb.config import ANY_HOST, RANDOM_PASSWORD_LENGTH, ROOT_USERNAME
from initdb.config_models import AppSettings
from initdb.context import ProvisioningContext
from initdb.mysql_client import AdminSession, Credentials, quote_identifier

module_logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = RANDOM_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def announce_generated_password(label: str, password: str) -> None:
    # Printed, not logged: the value must not reach log files.
    print(f"GENERATED {label} PASSWORD: {password}", flush=True)


def _bound(identifier_sql: str) -> str:
    # Quoted identifiers end up in statements that also carry bound
    # parameters, so a literal % must survive the driver's formatting.
    return identifier_sql.replace("%", "%%")


def create_admin_account(
    session: AdminSession, username: str, password: str, host: str
) -> None:
    session.execute(
        "CREATE USER %s@%s IDENTIFIED BY %s", (username, host, password)
    )
    session.execute(
        "GRANT ALL ON *.* TO %s@%s WITH GRANT OPTION", (username, host)
    )


def purge_accounts(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    """Remove every account, including the password-less bootstrap root."""
    session = context.require_session()
    session.execute("DELETE FROM mysql.user")
    session.execute("FLUSH PRIVILEGES")
    log_message(
        "Removed default accounts", "info", context.logger, app_settings
    )


def _pick_password(
    random_flag: bool,
    given: Optional[str],
    label: str,
    context: ProvisioningContext,
    app_settings: AppSettings,
) -> str:
    if random_flag:
        password = generate_password()
        announce_generated_password(label, password)
        return password
    if given:
        return given
    log_message(
        f"{app_settings.symbols.get('warning', '⚠️')} {label.capitalize()} account is created with an empty password",
        "warning",
        context.logger,
        app_settings,
    )
    return ""


def provision_root(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    settings = context.settings
    if not settings.wants_root_account:
        log_message(
            "No root password option set, root account not created",
            "info",
            context.logger,
            app_settings,
        )
        return

    password = _pick_password(
        settings.random_root_password,
        settings.root_password,
        "ROOT",
        context,
        app_settings,
    )
    session = context.require_session()
    create_admin_account(session, ROOT_USERNAME, password, ANY_HOST)
    session.execute("DROP DATABASE IF EXISTS test")
    log_message(
        f"{app_settings.symbols.get('key', '🔑')} Created account '{ROOT_USERNAME}'@'{ANY_HOST}'",
        "info",
        context.logger,
        app_settings,
    )
    context.record_admin_account(
        Credentials(ROOT_USERNAME, password), ANY_HOST
    )


def provision_admin(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    settings = context.settings
    if not settings.admin_user:
        log_message(
            "MYSQL_ADMIN_USER not set, no secondary admin created",
            "debug",
            context.logger,
            app_settings,
        )
        return

    password = _pick_password(
        settings.random_admin_password,
        settings.admin_password,
        "ADMIN",
        context,
        app_settings,
    )
    create_admin_account(
        context.require_session(),
        settings.admin_user,
        password,
        ANY_HOST,
    )
    log_message(
        f"{app_settings.symbols.get('key', '🔑')} Created admin account '{settings.admin_user}'",
        "info",
        context.logger,
        app_settings,
    )
    context.record_admin_account(
        Credentials(settings.admin_user, password), ANY_HOST
    )


def provision_database(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    database = context.settings.database
    if not database:
        return
    context.require_session().execute(
        f"CREATE DATABASE IF NOT EXISTS {quote_identifier(database)}"
    )
    log_message(
        f"Database '{database}' is present",
        "info",
        context.logger,
        app_settings,
    )


def provision_user(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    settings = context.settings
    if not settings.wants_standard_user:
        if settings.user or settings.password:
            log_message(
                "MYSQL_USER and MYSQL_PASSWORD must both be set, standard user not created",
                "warning",
                context.logger,
                app_settings,
            )
        return

    session = context.require_session()
    session.execute(
        "CREATE USER %s@%s IDENTIFIED BY %s",
        (settings.user, ANY_HOST, settings.password),
    )
    if settings.database:
        session.execute(
            f"GRANT ALL ON {_bound(quote_identifier(settings.database))}.* TO %s@%s",
            (settings.user, ANY_HOST),
        )
    context.user_created = True
    log_message(
        f"{app_settings.symbols.get('key', '🔑')} Created user '{settings.user}'"
        + (f" with access to '{settings.database}'" if settings.database else ""),
        "info",
        context.logger,
        app_settings,
    )


def ensure_fallback_account(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    """
    Guarantee at least one login: without any configured account, create
    a password-less root that has to change its password on first login.
    """
    if context.user_created:
        return

    log_message(
        f"{app_settings.symbols.get('warning', '⚠️')} No account was configured. Creating '{ROOT_USERNAME}'@'{ANY_HOST}' "
        "with an empty password that must be changed on first login. Set "
        "MYSQL_ROOT_PASSWORD, MYSQL_RANDOM_ROOT_PASSWORD or MYSQL_ADMIN_USER to avoid this.",
        "warning",
        context.logger,
        app_settings,
    )
    create_admin_account(
        context.require_session(), ROOT_USERNAME, "", ANY_HOST
    )
    context.onetime_password = True
    context.record_admin_account(
        Credentials(ROOT_USERNAME, ""), ANY_HOST
    )


def expire_passwords(
    context: ProvisioningContext, app_settings: AppSettings, **kwargs
) -> None:
    """Mark admin passwords expired so they must be changed at next login."""
    if not context.onetime_password:
        return

    session = context.require_session()
    admin_user = context.settings.admin_user
    if admin_user:
        session.execute(
            "ALTER USER %s@%s PASSWORD EXPIRE", (admin_user, ANY_HOST)
        )
        log_message(
            f"Password of '{admin_user}' expired",
            "info",
            context.logger,
            app_settings,
        )

    if not context.has_admin_credentials:
        log_message(
            "No administrative account was created, nothing else to expire",
            "warning",
            context.logger,
            app_settings,
        )
        return

    own_user = context.credentials.username
    if own_user != admin_user:
        session.execute(
            "ALTER USER %s@%s PASSWORD EXPIRE",
            (own_user, context.credentials_host),
        )
        log_message(
            f"Password of '{own_user}'@'{context.credentials_host}' expired",
            "info",
            context.logger,
            app_settings,
        )
