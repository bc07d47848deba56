"""Host-boundary adaptor.

Exposes the bridge through a fixed registry of named methods and read-only
properties whose values are limited to bool, 32-bit int, text and bytes.
Failures are reported by returning False; the reason is in LastError.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pgbridge.core.bridge import PgBridge
from pgbridge.core.errors import Outcome
from pgbridge.core.exceptions import ValidationError
from pgbridge.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

HostValue = bool | int | str | bytes | None


@dataclass(frozen=True)
class MethodInfo:
    name: str
    method: Callable[[PostgresAddin, Any], Outcome[Any]]
    param_count: int = 1
    has_return: bool = True


@dataclass(frozen=True)
class PropInfo:
    name: str
    getter: Callable[[PostgresAddin], HostValue] | None
    setter: Callable[[PostgresAddin, Any], None] | None = None


class PostgresAddin:
    """Registry-based component wrapping a single PgBridge."""

    NAME = "Postgres"

    def __init__(self) -> None:
        self.bridge = PgBridge()
        self._lock = threading.Lock()

    def __enter__(self) -> PostgresAddin:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self.bridge.close()

    # -- registry --

    @staticmethod
    def methods() -> tuple[MethodInfo, ...]:
        return _METHODS

    @staticmethod
    def properties() -> tuple[PropInfo, ...]:
        return _PROPERTIES

    def find_method(self, name: str) -> int | None:
        return _find(_METHODS, name)

    def find_prop(self, name: str) -> int | None:
        return _find(_PROPERTIES, name)

    # -- dispatch --

    def call_as_proc(self, name: str, *params: Any) -> bool:
        ok, _ = self.call_as_func(name, *params)
        return ok

    def call_as_func(self, name: str, *params: Any) -> tuple[bool, HostValue]:
        index = self.find_method(name)
        if index is None:
            get_logger("addin").warning("unknown method", method=name)
            self._reject(f"Unknown method: {name}")
            return False, None
        info = _METHODS[index]
        if len(params) != info.param_count:
            get_logger("addin").warning(
                "wrong parameter count",
                method=info.name,
                expected=info.param_count,
                got=len(params),
            )
            self._reject(
                f"{info.name} expects {info.param_count} parameter(s), got {len(params)}"
            )
            return False, None
        with self._lock:
            outcome = info.method(self, *params)
        if not outcome.ok:
            return False, None
        return True, outcome.value if info.has_return else None

    def get_prop_val(self, name: str) -> HostValue:
        index = self.find_prop(name)
        if index is None or _PROPERTIES[index].getter is None:
            return None
        with self._lock:
            return _PROPERTIES[index].getter(self)  # type: ignore[misc]

    def set_prop_val(self, name: str, value: Any) -> bool:
        index = self.find_prop(name)
        if index is None or _PROPERTIES[index].setter is None:
            return False
        with self._lock:
            _PROPERTIES[index].setter(self, value)  # type: ignore[misc]
        return True

    def _reject(self, message: str) -> None:
        with self._lock:
            self.bridge.errors.record(Outcome.failure(ValidationError(message)))

    # -- handlers --

    def _connect(self, connection_string: Any) -> Outcome[None]:
        return self.bridge.connect(connection_string)

    def _simple_query(self, sql: Any) -> Outcome[bytes]:
        return self.bridge.simple_query(sql)

    def _notifications(self, timeout_ms: Any) -> Outcome[bytes]:
        return self.bridge.notifications(timeout_ms)

    def _connected(self) -> bool:
        return self.bridge.connected

    def _last_error(self) -> str:
        return self.bridge.last_error


def _find(entries: tuple[MethodInfo, ...] | tuple[PropInfo, ...], name: str) -> int | None:
    wanted = name.casefold()
    for i, entry in enumerate(entries):
        if entry.name.casefold() == wanted:
            return i
    return None


_METHODS: tuple[MethodInfo, ...] = (
    MethodInfo(name="Connect", method=PostgresAddin._connect, has_return=False),
    MethodInfo(name="SimpleQuery", method=PostgresAddin._simple_query),
    MethodInfo(name="Notifications", method=PostgresAddin._notifications),
)

_PROPERTIES: tuple[PropInfo, ...] = (
    PropInfo(name="Connected", getter=PostgresAddin._connected),
    PropInfo(name="LastError", getter=PostgresAddin._last_error),
)
