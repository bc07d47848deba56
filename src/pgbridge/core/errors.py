"""Deferred error reporting.

The host calling convention has no way to raise, so every bridge operation
returns an Outcome and the most recent failure is kept in an ErrorSink for
the caller to poll.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pgbridge.core.exceptions import BridgeError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: BridgeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: BridgeError) -> Outcome[T]:
        return cls(error=error)


class ErrorSink:
    """Holds the error of the most recent operation, or nothing."""

    def __init__(self) -> None:
        self._error: BridgeError | None = None

    def record(self, outcome: Outcome[object]) -> None:
        """Clear on success, replace on failure."""
        self._error = outcome.error

    @property
    def error(self) -> BridgeError | None:
        return self._error

    @property
    def last_error(self) -> str:
        if self._error is None:
            return ""
        return str(self._error)
