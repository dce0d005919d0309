# tests/initdb/test_cli.py
import subprocess

import pymysql
import pytest

from initdb.cli import main, parse_args
from initdb.config import SCRIPT_VERSION
from initdb.errors import ReadinessTimeoutError


@pytest.fixture
def quiet_logging(mocker):
    return mocker.patch("initdb.cli.setup_logging")


def test_parse_args_defaults():
    args = parse_args([])

    assert args.verbose is False
    assert args.config_file is None
    assert args.skip_tzinfo is None
    assert args.exec_server is False
    assert args.server_command == []


def test_parse_args_server_command_after_separator():
    args = parse_args(
        ["--seed-dir", "/seeds", "--", "mysqld", "--user=mysql", "-v"]
    )

    assert args.seed_dir == "/seeds"
    assert args.verbose is False
    assert args.server_command == ["mysqld", "--user=mysql", "-v"]


def test_parse_args_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_args(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == f"mysql-initdb {SCRIPT_VERSION}"


def test_parse_args_options():
    args = parse_args(
        ["-v", "--skip-tzinfo", "--readiness-attempts", "5", "--exec"]
    )

    assert args.verbose is True
    assert args.skip_tzinfo is True
    assert args.readiness_attempts == 5
    assert args.exec_server is True


def test_main_success(mocker, quiet_logging):
    mock_bootstrap = mocker.patch("initdb.cli.run_bootstrap", return_value=0)

    assert main(["--", "mysqld", "--user=mysql"]) == 0

    app_settings = mock_bootstrap.call_args[0][0]
    assert app_settings.server_command == ["mysqld", "--user=mysql"]
    quiet_logging.assert_called_once()


def test_main_returns_bootstrap_status(mocker, quiet_logging):
    mocker.patch("initdb.cli.run_bootstrap", return_value=1)

    assert main([]) == 1


@pytest.mark.parametrize(
    "error",
    [
        ReadinessTimeoutError("no answer"),
        subprocess.CalledProcessError(1, ["mysqld"]),
        pymysql.err.OperationalError(1045, "Access denied"),
        FileNotFoundError("Required command 'mysqld' not found"),
    ],
)
def test_main_failure_exit_code(mocker, quiet_logging, error):
    mocker.patch("initdb.cli.run_bootstrap", side_effect=error)
    mock_logger = mocker.patch("initdb.cli.logger")

    assert main([]) == 1

    assert "MySQL init process failed" in mock_logger.critical.call_args[0][0]


def test_main_configuration_error_exits(mocker, monkeypatch, quiet_logging):
    monkeypatch.setenv("MYSQL_USER", "root")
    monkeypatch.setenv("MYSQL_PASSWORD", "pw")
    mock_bootstrap = mocker.patch("initdb.cli.run_bootstrap")

    with pytest.raises(SystemExit):
        main([])

    mock_bootstrap.assert_not_called()


def test_main_exec_hands_over_to_server(mocker, quiet_logging):
    mocker.patch("initdb.cli.run_bootstrap", return_value=0)
    mock_exec = mocker.patch("os.execvp")

    main(["--exec", "--", "mysqld", "--user=mysql"])

    mock_exec.assert_called_once_with("mysqld", ["mysqld", "--user=mysql"])


def test_main_exec_skipped_on_failure(mocker, quiet_logging):
    mocker.patch("initdb.cli.run_bootstrap", return_value=1)
    mock_exec = mocker.patch("os.execvp")

    assert main(["--exec"]) == 1

    mock_exec.assert_not_called()


def test_main_custom_log_prefix_reconfigures_logging(
    mocker, monkeypatch, quiet_logging
):
    monkeypatch.setenv("INITDB_LOG_PREFIX", "[DB]")
    mocker.patch("initdb.cli.run_bootstrap", return_value=0)

    main([])

    assert quiet_logging.call_count == 2
    assert quiet_logging.call_args[1]["log_prefix"] == "[DB]"
