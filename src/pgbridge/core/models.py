"""Result and notification models for pgbridge.

Pydantic models for the messages produced by QueryExecutor and
NotificationDrain and consumed by ResultSerializer.
"""

from __future__ import annotations

from typing import TypeAlias

from pydantic import BaseModel, ConfigDict

ColumnValue: TypeAlias = bool | int | float | str | None


class Row(BaseModel):
    """One data row; column names as sent by the server, in column order."""

    model_config = ConfigDict(frozen=True)

    columns: list[tuple[str, ColumnValue]]


class CommandComplete(BaseModel):
    """Completion of a statement that returned no row description."""

    model_config = ConfigDict(frozen=True)

    rows_affected: int


ResultMessage: TypeAlias = Row | CommandComplete


class Notification(BaseModel):
    """An asynchronous NOTIFY message received on a listening session."""

    model_config = ConfigDict(frozen=True)

    channel: str
    payload: str
    pid: int = 0
