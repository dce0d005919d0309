"""
MySQL data directory bootstrap.

This package initializes an empty data directory, provisions accounts and
databases from MYSQL_* environment variables through a temporary
socket-only server, runs seed scripts and stops the server again.

Entry points are ``initdb.cli.main`` and ``initdb.bootstrap.run_bootstrap``.
"""
