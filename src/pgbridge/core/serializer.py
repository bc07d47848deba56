"""Self-describing JSON encoding of query results and notifications.

SimpleQuery output:    [ {"col": value, ...} | rows_affected, ... ]
Notifications output:  [ {"channel": "...", "payload": "..."}, ... ]
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from pgbridge.core.exceptions import SerializationError
from pgbridge.core.models import CommandComplete, Row

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pgbridge.core.models import Notification, ResultMessage

# Name PostgreSQL gives to an unaliased computed column (SELECT 1+1).
ANONYMOUS_COLUMN = "?column?"


def resolve_column_names(names: Iterable[str]) -> list[str]:
    """Return unique keys for one row, in column order.

    Anonymous, empty, or already-used names become column_<index>.
    """
    keys: list[str] = []
    used: set[str] = set()
    for i, name in enumerate(names):
        key = name
        if not key or key == ANONYMOUS_COLUMN or key in used:
            key = f"column_{i}"
            while key in used:
                key += "_"
        used.add(key)
        keys.append(key)
    return keys


class ResultSerializer:
    def serialize_results(self, messages: Iterable[ResultMessage]) -> bytes:
        elements: list[Any] = []
        for message in messages:
            if isinstance(message, Row):
                keys = resolve_column_names(name for name, _ in message.columns)
                elements.append(
                    dict(zip(keys, (value for _, value in message.columns), strict=True))
                )
            elif isinstance(message, CommandComplete):
                elements.append(message.rows_affected)
        return self._encode(elements)

    def serialize_notifications(self, notifications: Iterable[Notification]) -> bytes:
        return self._encode(
            [{"channel": n.channel, "payload": n.payload} for n in notifications]
        )

    def _encode(self, elements: list[Any]) -> bytes:
        try:
            text = json.dumps(
                elements,
                ensure_ascii=False,
                allow_nan=False,
                separators=(",", ":"),
            )
        except (TypeError, ValueError) as e:
            structlog.get_logger().error("serialization failed", error=str(e))
            raise SerializationError(f"Serialization failed: {e}") from e
        return text.encode("utf-8")
