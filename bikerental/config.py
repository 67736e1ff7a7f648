import os

server_mode = os.getenv("SERVER_MODE", "development")
"""The operational mode of the server."""

database_url = os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
"""The database the bike directory and booking ledger live in."""

sentry_dsn = os.getenv("SENTRY_DSN", None)
"""The sentry DSN, exceptions are only reported when this is set."""

reconcile_interval = int(os.getenv("RECONCILE_INTERVAL", "300"))
"""Seconds between two availability reconciliation passes."""

api_root = "/api/v1"
"""The base url for the api."""
