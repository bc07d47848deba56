"""Simple-query execution.

Runs unparameterized, possibly multi-statement SQL text and turns every
result set into ResultMessages in server order.
"""

from __future__ import annotations

import json
import math
import time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import psycopg
import sentry_sdk
import structlog
from psycopg import pq

from pgbridge.core.exceptions import QueryError
from pgbridge.core.models import CommandComplete, Row

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pgbridge.core.connection import ConnectionManager
    from pgbridge.core.models import ColumnValue, ResultMessage
    from pgbridge.core.serializer import ResultSerializer

_NON_FINITE = {math.inf: "Infinity", -math.inf: "-Infinity"}


def decode_value(val: Any) -> ColumnValue:
    """Map a value loaded by psycopg onto null/bool/int/float/text."""
    if val is None or isinstance(val, (bool, int, str)):
        return val
    if isinstance(val, float):
        if math.isnan(val):
            return "NaN"
        return _NON_FINITE.get(val, val)
    if isinstance(val, Decimal):
        return str(val)
    if isinstance(val, (dict, list)):
        return json.dumps(val, ensure_ascii=False, separators=(",", ":"), default=str)
    if isinstance(val, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(val).hex()
    return str(val)


def iter_messages(cursor: psycopg.Cursor[Any]) -> Iterator[ResultMessage]:
    """Walk every result set left on an executed cursor."""
    while True:
        if cursor.description is not None:
            names = [column.name for column in cursor.description]
            for record in cursor:
                yield Row(
                    columns=[
                        (name, decode_value(val))
                        for name, val in zip(names, record, strict=True)
                    ]
                )
        else:
            yield CommandComplete(rows_affected=max(cursor.rowcount, 0))
        if not cursor.nextset():
            break


class QueryExecutor:
    def __init__(
        self, connections: ConnectionManager, serializer: ResultSerializer
    ) -> None:
        self._connections = connections
        self._serializer = serializer

    def simple_query(self, sql: str) -> bytes:
        """Execute SQL text and return the encoded result array.

        All messages are collected before encoding, so a failure in a later
        statement yields no output even if earlier statements committed.
        """
        log = structlog.get_logger()
        conn = self._connections.require_connection()

        sql_normalized = " ".join(sql.split())
        log.debug("executing simple query", sql=sql_normalized)
        with sentry_sdk.start_span(
            op="db.query", description=sql_normalized[:100]
        ) as span:
            start_time = time.monotonic()
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, prepare=False)
                    messages = list(iter_messages(cur))
            except psycopg.Error as e:
                span.set_status("internal_error")
                log.error("query failed", sql=sql_normalized, error=str(e))
                if conn.info.transaction_status == pq.TransactionStatus.ACTIVE:
                    self._reset_session(conn)
                raise QueryError(f"SQL error: {e}") from e

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("message_count", len(messages))
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "query complete",
                duration_ms=f"{duration_ms:.1f}",
                message_count=len(messages),
            )

        return self._serializer.serialize_results(messages)

    def _reset_session(self, conn: psycopg.Connection[Any]) -> None:
        """Return a session stuck mid-command (e.g. in COPY mode) to idle.

        The running command is cancelled and every remaining result is read
        and dropped. If that fails the connection is closed, so the failure
        shows up as Connected == false instead of a wedged session.
        """
        log = structlog.get_logger()
        log.warning("session left busy by failed query, cancelling")
        try:
            conn.cancel_safe()
            with conn.lock:
                pgconn = conn.pgconn
                while (result := pgconn.get_result()) is not None:
                    if result.status == pq.ExecStatus.COPY_OUT:
                        while pgconn.get_copy_data(0)[0] != -1:
                            pass
                    elif result.status in (
                        pq.ExecStatus.COPY_IN,
                        pq.ExecStatus.COPY_BOTH,
                    ):
                        pgconn.put_copy_end(b"COPY is not supported by pgbridge")
        except psycopg.Error as e:
            log.error("session reset failed, closing connection", error=str(e))
            conn.close()
