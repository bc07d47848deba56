"""Shared CLI plumbing: config resolution, bridge setup, error exits."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, NoReturn

import sentry_sdk
import typer

from pgbridge.core.bridge import PgBridge
from pgbridge.core.config import load_config, resolve_config
from pgbridge.core.exceptions import BridgeError
from pgbridge.core.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pgbridge.core.config import ResolvedConfig
    from pgbridge.core.errors import Outcome


def fail(error: BridgeError, *, capture: bool = True) -> NoReturn:
    if capture:
        sentry_sdk.capture_exception(error)
    typer.echo(f"Error: {error.message}", err=True)
    raise typer.Exit(error.exit_code)


def unwrap(outcome: Outcome[Any]) -> Any:
    # PgBridge already reported the failure to Sentry.
    if outcome.error is not None:
        fail(outcome.error, capture=False)
    return outcome.value


def get_config(ctx: typer.Context, timeout: int | None = None) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    cli_overrides: dict[str, Any] = {}
    for key in ("host", "port", "database", "user", "password", "sslmode"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    try:
        config = load_config(obj.get("config_file"))
        resolved = resolve_config(
            config,
            profile_name=obj.get("profile"),
            dsn=obj.get("dsn"),
            **cli_overrides,
        )
    except BridgeError as e:
        fail(e)

    if not obj.get("verbose") and resolved.log_level is not None:
        setup_logging(resolved.log_level)
    return resolved


@contextmanager
def connected_bridge(resolved: ResolvedConfig) -> Iterator[PgBridge]:
    """Yield a connected PgBridge; exit with the connect error otherwise."""
    with PgBridge() as bridge:
        unwrap(bridge.connect(resolved.conninfo))
        yield bridge
