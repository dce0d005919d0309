# initdb/errors.py
# -*- coding: utf-8 -*-
"""
Exceptions raised by the bootstrap phases.
"""


class InitdbError(Exception):
    """Base class for bootstrap failures."""


class ConfigurationError(InitdbError):
    """The provisioning environment is contradictory or unreadable."""


class ReadinessTimeoutError(InitdbError):
    """The temporary server never answered within the polling budget."""


class ServerStopError(InitdbError):
    """The temporary server could not be signalled or exited non-zero."""


class SeedScriptError(InitdbError):
    """A seed script failed."""

    def __init__(self, script_path: str, reason: str):
        super().__init__(f"Seed script {script_path} failed: {reason}")
        self.script_path = script_path
        self.reason = reason


class IncompleteInitializationError(InitdbError):
    """The incomplete marker survived, a previous run did not finish."""
