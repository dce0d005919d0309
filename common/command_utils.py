# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Running the engine's command line tools and logging what they did.

Commands are always argument lists; nothing goes through a shell. Secrets
travel in the child's environment, never in the argument list, because the
argument list is logged.
"""

import logging
import shutil
import subprocess
from typing import Dict, List, Optional, Union

from initdb.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)

_LOG_METHODS = ("debug", "warning", "error", "critical")


def log_message(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Log ``message`` at a named level.

    Args:
        message (str): The text to log.
        level (str): "debug", "info", "warning", "error" or "critical".
            Anything else, such as "success", is logged at INFO.
        current_logger (Optional[logging.Logger]): Logger to use. Defaults to
            this module's logger.
        app_settings (Optional[AppSettings]): Accepted so every helper can
            forward its settings unchanged.
        exc_info (bool): Attach the current exception's traceback.
    """
    effective_logger = current_logger if current_logger else module_logger
    method = level if level in _LOG_METHODS else "info"
    getattr(effective_logger, method)(message, exc_info=exc_info)


def _symbols_for(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    return (
        app_settings.symbols
        if app_settings and app_settings.symbols
        else SYMBOLS_DEFAULT
    )


def _stream_text(stream: Optional[Union[str, bytes]]) -> str:
    if not stream:
        return ""
    if isinstance(stream, bytes):
        stream = stream.decode("utf-8", errors="replace")
    return stream.strip()


def _report_not_found(
    error: FileNotFoundError,
    symbols: Dict[str, str],
    logger: logging.Logger,
    app_settings: Optional[AppSettings],
) -> None:
    log_message(
        f"{symbols.get('error', '❌')} Command not found: {error.filename}. Ensure it's installed and in PATH.",
        "error",
        logger,
        app_settings,
    )


def _report_failure(
    error: subprocess.CalledProcessError,
    command_str: str,
    symbols: Dict[str, str],
    logger: logging.Logger,
    app_settings: Optional[AppSettings],
) -> None:
    log_message(
        f"{symbols.get('error', '❌')} Command `{command_str}` failed (rc {error.returncode}).",
        "error",
        logger,
        app_settings,
    )
    for label, stream in (("stdout", error.stdout), ("stderr", error.stderr)):
        text = _stream_text(stream)
        if text:
            log_message(f"   {label}: {text}", "error", logger, app_settings)


def run_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[Union[str, bytes]] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a command to completion.

    The invocation is logged at DEBUG. On failure the exit code and any
    captured output are logged at ERROR before the exception propagates.

    Args:
        command (List[str]): The command as an argument list.
        app_settings (Optional[AppSettings]): Source of the log symbols.
        check (bool): Raise CalledProcessError on a non-zero exit code.
        capture_output (bool): Capture stdout and stderr.
        text (bool): Treat the streams as text. Pass False to feed or capture
            raw bytes, e.g. SQL of unknown encoding.
        cmd_input (Optional[Union[str, bytes]]): Standard input for the
            command, matching ``text``.
        current_logger (Optional[logging.Logger]): Logger to use.
        cwd (Optional[str]): Working directory of the command.
        env (Optional[Dict[str, str]]): Complete environment of the command.
            Defaults to the inherited one.
        log_output (bool): Echo captured output at DEBUG on success, decoding
            bytes as UTF-8. Disable it for bulk output.

    Returns:
        subprocess.CompletedProcess: The finished process.

    Raises:
        subprocess.CalledProcessError: Non-zero exit code with ``check``.
        FileNotFoundError: The executable does not exist.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    command_str = subprocess.list2cmdline(command)

    log_message(
        f"{symbols.get('gear', '⚙️')} Executing: {command_str} {f'(in {cwd})' if cwd else ''}".rstrip(),
        "debug",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command,
            check=check,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
            cwd=cwd,
            env=env,
        )
    except subprocess.CalledProcessError as e:
        _report_failure(
            e, command_str, symbols, effective_logger, app_settings
        )
        raise
    except FileNotFoundError as e:
        _report_not_found(e, symbols, effective_logger, app_settings)
        raise

    if capture_output and log_output:
        for label, stream in (
            ("stdout", result.stdout),
            ("stderr", result.stderr),
        ):
            output = _stream_text(stream)
            if output:
                log_message(
                    f"   {label}: {output}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
    return result


def start_background_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.Popen:
    """
    Start a long-running command and return without waiting.

    The child inherits stdout and stderr so its own diagnostics reach the
    container log. The caller owns the returned process and must stop it.

    Raises:
        FileNotFoundError: The executable does not exist.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)

    log_message(
        f"{symbols.get('rocket', '🚀')} Starting in background: {subprocess.list2cmdline(command)}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        process = subprocess.Popen(command, env=env)
    except FileNotFoundError as e:
        _report_not_found(e, symbols, effective_logger, app_settings)
        raise
    log_message(
        f"   pid: {process.pid}", "debug", effective_logger, app_settings
    )
    return process


def command_exists(command_name: str) -> bool:
    """True if ``command_name`` resolves to an executable on PATH."""
    return shutil.which(command_name) is not None
