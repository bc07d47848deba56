"""The bridge instance: one connection, one error sink, three operations.

Operations return an Outcome and never raise. Each outcome is also written
to the ErrorSink so a host that cannot see exceptions can poll last_error.
The core does no locking; callers that may run operations concurrently must
serialize access to the whole instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import sentry_sdk
import structlog

from pgbridge.core.connection import ConnectionManager
from pgbridge.core.errors import ErrorSink, Outcome
from pgbridge.core.exceptions import BridgeError, ValidationError
from pgbridge.core.executor import QueryExecutor
from pgbridge.core.notifications import NotificationDrain
from pgbridge.core.serializer import ResultSerializer

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        msg = f"{name} must be a string, got {type(value).__name__}"
        raise ValidationError(msg)
    return value


def _require_i32(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {type(value).__name__}"
        raise ValidationError(msg)
    if not (_I32_MIN <= value <= _I32_MAX):
        msg = f"{name} out of 32-bit range: {value}"
        raise ValidationError(msg)
    return value


class PgBridge:
    """PostgreSQL bridge for a host without exceptions."""

    def __init__(self) -> None:
        self.errors = ErrorSink()
        self.connections = ConnectionManager()
        serializer = ResultSerializer()
        self.executor = QueryExecutor(self.connections, serializer)
        self.drain = NotificationDrain(self.connections, serializer)

    def __enter__(self) -> PgBridge:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _run(self, operation: str, func: Callable[[], T]) -> Outcome[T]:
        log = structlog.get_logger()
        try:
            outcome: Outcome[T] = Outcome.success(func())
        except BridgeError as e:
            sentry_sdk.capture_exception(e)
            log.debug("operation failed", operation=operation, error=e.message)
            outcome = Outcome.failure(e)
        except Exception as e:
            sentry_sdk.capture_exception(e)
            log.exception("unexpected error", operation=operation)
            outcome = Outcome.failure(BridgeError(f"Unexpected error: {e}"))
        self.errors.record(outcome)
        return outcome

    def connect(self, connection_string: Any) -> Outcome[None]:
        return self._run(
            "Connect",
            lambda: self.connections.connect(
                _require_text(connection_string, "connection string")
            ),
        )

    def simple_query(self, sql: Any) -> Outcome[bytes]:
        return self._run(
            "SimpleQuery",
            lambda: self.executor.simple_query(_require_text(sql, "sql")),
        )

    def notifications(self, timeout_ms: Any) -> Outcome[bytes]:
        return self._run(
            "Notifications",
            lambda: self.drain.notifications(_require_i32(timeout_ms, "timeout")),
        )

    @property
    def connected(self) -> bool:
        return self.connections.connected()

    @property
    def last_error(self) -> str:
        return self.errors.last_error

    def close(self) -> None:
        self.connections.close()
