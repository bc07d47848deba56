"""Blocking-with-timeout drain of LISTEN/NOTIFY messages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import psycopg
import sentry_sdk
import structlog

from pgbridge.core.exceptions import ProtocolError, ValidationError
from pgbridge.core.models import Notification

if TYPE_CHECKING:
    from pgbridge.core.connection import ConnectionManager
    from pgbridge.core.serializer import ResultSerializer


class NotificationDrain:
    def __init__(
        self, connections: ConnectionManager, serializer: ResultSerializer
    ) -> None:
        self._connections = connections
        self._serializer = serializer

    def notifications(self, timeout_ms: int) -> bytes:
        """Return the encoded array of notifications received so far.

        With timeout_ms == 0 only what is already buffered or readable is
        returned. With timeout_ms > 0 the call waits up to that long for the
        first notification, then collects whatever else is available without
        waiting again. An elapsed deadline is not an error.

        Notifications that arrived while a query was running are kept in
        psycopg's backlog and come out first, in arrival order.
        """
        conn = self._connections.require_connection()
        if timeout_ms < 0:
            raise ValidationError("Timeout must be >= 0")

        log = structlog.get_logger()
        with sentry_sdk.start_span(op="db.notifications") as span:
            span.set_data("timeout_ms", timeout_ms)
            try:
                received = self._collect(conn, timeout_ms)
            except psycopg.Error as e:
                span.set_status("unavailable")
                log.error("notification drain failed", error=str(e))
                raise ProtocolError(f"Notification error: {e}") from e
            span.set_data("notification_count", len(received))

        log.debug("notifications drained", count=len(received))
        return self._serializer.serialize_notifications(received)

    def _collect(
        self, conn: psycopg.Connection[Any], timeout_ms: int
    ) -> list[Notification]:
        received: list[psycopg.Notify] = []
        if timeout_ms > 0:
            received.extend(conn.notifies(timeout=timeout_ms / 1000, stop_after=1))
            if not received:
                return []
        received.extend(conn.notifies(timeout=0))
        return [
            Notification(channel=n.channel, payload=n.payload, pid=n.pid)
            for n in received
        ]
