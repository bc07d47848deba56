"""Connection lifecycle for the bridge.

Owns at most one psycopg v3 connection. Connecting is idempotent: once a
session is up it is kept for the lifetime of the owner, whatever connection
string a later connect() call passes. A session the server has closed is
not replaced; connect() reports it instead.
"""

from __future__ import annotations

from typing import Any

import psycopg
import sentry_sdk
import structlog
from psycopg.conninfo import conninfo_to_dict

from pgbridge.core.exceptions import ConnectionError, NotConnectedError

# Applied only when the connection string leaves them unset.
# No TLS is negotiated unless the caller asks for it explicitly.
_CONNINFO_DEFAULTS: dict[str, str] = {
    "sslmode": "disable",
    "application_name": "pgbridge",
}


class ConnectionManager:
    """Single long-lived PostgreSQL session."""

    def __init__(self) -> None:
        self._connection: psycopg.Connection[Any] | None = None

    def connect(self, connection_string: str) -> None:
        log = structlog.get_logger()
        if self._connection is not None:
            if self._connection.closed:
                raise ConnectionError("Connection closed; create a new instance")
            log.debug("already connected, keeping existing session")
            return

        with sentry_sdk.start_span(op="db.connect", description="connect") as span:
            try:
                params = conninfo_to_dict(connection_string)
                overrides = {
                    key: value
                    for key, value in _CONNINFO_DEFAULTS.items()
                    if key not in params
                }
                connection = psycopg.connect(
                    connection_string, autocommit=True, **overrides
                )
            except psycopg.Error as e:
                span.set_status("unavailable")
                log.error("connection failed", error=str(e))
                raise ConnectionError(f"Connection failed: {e}") from e

        self._connection = connection
        log.debug(
            "connected",
            host=connection.info.host,
            dbname=connection.info.dbname,
            backend_pid=connection.info.backend_pid,
        )

    def connected(self) -> bool:
        if self._connection is None:
            return False
        return not self._connection.closed

    def require_connection(self) -> psycopg.Connection[Any]:
        if self._connection is None or self._connection.closed:
            raise NotConnectedError()
        return self._connection

    def close(self) -> None:
        """Release the session. Called only when the owner is torn down."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
