# tests/initdb/test_context.py
import pytest

from initdb.context import ProvisioningContext
from initdb.mysql_client import BOOTSTRAP_CREDENTIALS, Credentials


@pytest.fixture
def mock_open(mocker):
    return mocker.patch("initdb.context.AdminSession.open")


def _context(app_settings, mock_logger):
    return ProvisioningContext(
        app_settings=app_settings,
        datadir="/var/lib/mysql",
        socket_path="/tmp/mysqld.sock",
        logger=mock_logger,
    )


def test_starts_with_bootstrap_credentials(app_settings, mock_logger):
    context = _context(app_settings, mock_logger)

    assert context.credentials == BOOTSTRAP_CREDENTIALS
    assert context.has_admin_credentials is False
    assert context.user_created is False
    assert context.onetime_password is False


def test_onetime_password_follows_settings(make_app_settings, mock_logger):
    context = _context(
        make_app_settings(onetime_password=True), mock_logger
    )

    assert context.onetime_password is True


def test_require_session_without_session(app_settings, mock_logger):
    with pytest.raises(RuntimeError):
        _context(app_settings, mock_logger).require_session()


def test_open_and_close_session(app_settings, mock_logger, mock_open):
    context = _context(app_settings, mock_logger)

    session = context.open_session()

    mock_open.assert_called_once_with(
        "/tmp/mysqld.sock", BOOTSTRAP_CREDENTIALS, app_settings, mock_logger
    )
    assert context.require_session() is session

    context.close_session()

    session.close.assert_called_once()
    assert context.session is None


def test_first_admin_account_becomes_own_login(
    app_settings, mock_logger, mock_open
):
    context = _context(app_settings, mock_logger)
    first_session = context.open_session()
    root = Credentials("root", "pw")

    context.record_admin_account(root, "%")

    assert context.user_created is True
    assert context.credentials == root
    assert context.credentials_host == "%"
    first_session.close.assert_called_once()
    assert mock_open.call_args[0][1] == root


def test_later_admin_accounts_keep_first_login(
    app_settings, mock_logger, mock_open
):
    context = _context(app_settings, mock_logger)
    context.open_session()
    context.record_admin_account(Credentials("root", "pw"), "%")
    opened = mock_open.call_count

    context.record_admin_account(Credentials("admin", "other"), "%")

    assert context.credentials.username == "root"
    assert mock_open.call_count == opened
