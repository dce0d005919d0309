# tests/initdb/test_bootstrap.py
from unittest.mock import MagicMock, call

import pytest

from initdb.bootstrap import (
    PHASES,
    build_orchestrator,
    required_binaries,
    run_bootstrap,
)
from initdb.context import ProvisioningContext
from initdb.datadir import marker_path
from initdb.errors import ServerStopError

SOCKET = "/tmp/mysqld.sock"


@pytest.fixture
def datadir(tmp_path, mocker):
    path = tmp_path / "datadir"
    mocker.patch(
        "initdb.bootstrap.probe_server_paths",
        return_value=(str(path), SOCKET),
    )
    return path


@pytest.fixture
def engine(mocker):
    """Replace the server binary and the client connection."""
    mocker.patch("initdb.bootstrap.ensure_binaries_available")
    initialize = mocker.patch("initdb.bootstrap.initialize_insecure")
    server_cls = mocker.patch("initdb.bootstrap.TemporaryServer")
    session = MagicMock()
    mocker.patch("initdb.context.AdminSession.open", return_value=session)
    return MagicMock(
        initialize=initialize, server=server_cls.return_value, session=session
    )


def test_phases_order():
    assert [name for name, _ in PHASES] == [
        "Initialize storage",
        "Start temporary server",
        "Import timezones",
        "Purge default accounts",
        "Provision root account",
        "Provision admin account",
        "Provision database",
        "Provision standard user",
        "Ensure an account exists",
        "Run seed scripts",
        "Expire passwords",
        "Stop temporary server",
        "Clear incomplete marker",
    ]


def test_build_orchestrator(app_settings, mock_logger):
    context = ProvisioningContext(
        app_settings=app_settings, datadir="/d", socket_path=SOCKET
    )

    orchestrator = build_orchestrator(context, app_settings, mock_logger)

    assert orchestrator.context is context
    assert [t.func for t in orchestrator.tasks] == [f for _, f in PHASES]


def test_required_binaries(make_app_settings):
    assert required_binaries(make_app_settings()) == [
        "mysqld",
        "mysql",
        "mysql_tzinfo_to_sql",
    ]
    assert required_binaries(
        make_app_settings(initdb_skip_tzinfo=True)
    ) == ["mysqld", "mysql"]


def test_existing_datadir_is_left_alone(mocker, datadir, app_settings):
    (datadir / "mysql").mkdir(parents=True)
    mock_build = mocker.patch("initdb.bootstrap.build_orchestrator")
    mock_binaries = mocker.patch("initdb.bootstrap.ensure_binaries_available")

    assert run_bootstrap(app_settings) == 0

    mock_build.assert_not_called()
    mock_binaries.assert_not_called()


def test_existing_datadir_with_marker_fails(
    mocker, datadir, app_settings, mock_logger
):
    (datadir / "mysql").mkdir(parents=True)
    marker_path(str(datadir)).touch()
    mocker.patch("initdb.bootstrap.build_orchestrator")

    assert run_bootstrap(app_settings, mock_logger) == 1

    mock_logger.critical.assert_called_once()


def test_missing_binary_aborts_before_any_change(
    mocker, datadir, app_settings
):
    mocker.patch(
        "initdb.bootstrap.ensure_binaries_available",
        side_effect=FileNotFoundError("Required command 'mysqld' not found"),
    )

    with pytest.raises(FileNotFoundError):
        run_bootstrap(app_settings)

    assert not datadir.exists()


def test_full_run(datadir, engine, make_app_settings):
    app_settings = make_app_settings(
        initdb_skip_tzinfo=True,
        root_password="root_pw",
        database="app",
        user="app",
        password="app_pw",
    )
    sleep = MagicMock()

    assert run_bootstrap(app_settings, sleep=sleep) == 0

    engine.initialize.assert_called_once()
    engine.server.start.assert_called_once()
    engine.server.wait_until_ready.assert_called_once()
    assert engine.server.wait_until_ready.call_args[1]["sleep"] is sleep
    engine.server.stop.assert_called_once()
    assert datadir.is_dir()
    assert not marker_path(str(datadir)).exists()

    assert engine.session.execute.call_args_list == [
        call("DELETE FROM mysql.user"),
        call("FLUSH PRIVILEGES"),
        call("CREATE USER %s@%s IDENTIFIED BY %s", ("root", "%", "root_pw")),
        call("GRANT ALL ON *.* TO %s@%s WITH GRANT OPTION", ("root", "%")),
        call("DROP DATABASE IF EXISTS test"),
        call("CREATE DATABASE IF NOT EXISTS `app`"),
        call("CREATE USER %s@%s IDENTIFIED BY %s", ("app", "%", "app_pw")),
        call("GRANT ALL ON `app`.* TO %s@%s", ("app", "%")),
    ]


def test_full_run_without_configuration_creates_fallback(
    datadir, engine, make_app_settings
):
    app_settings = make_app_settings(initdb_skip_tzinfo=True)

    assert run_bootstrap(app_settings, sleep=MagicMock()) == 0

    statements = [c.args for c in engine.session.execute.call_args_list]
    assert statements[2:] == [
        ("CREATE USER %s@%s IDENTIFIED BY %s", ("root", "%", "")),
        ("GRANT ALL ON *.* TO %s@%s WITH GRANT OPTION", ("root", "%")),
        ("ALTER USER %s@%s PASSWORD EXPIRE", ("root", "%")),
    ]


def test_failed_phase_exits_and_keeps_marker(
    datadir, engine, make_app_settings
):
    app_settings = make_app_settings(
        initdb_skip_tzinfo=True, root_password="pw"
    )
    engine.server.stop.side_effect = ServerStopError("exited with code 1")

    with pytest.raises(SystemExit) as excinfo:
        run_bootstrap(app_settings, sleep=MagicMock())

    assert excinfo.value.code == 1
    assert marker_path(str(datadir)).exists()
