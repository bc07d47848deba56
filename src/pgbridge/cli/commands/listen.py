"""LISTEN on channels and print notification batches as JSON lines."""

from __future__ import annotations

import sys
import time
from typing import Annotated

import structlog
import typer

from pgbridge.cli.commands._shared import connected_bridge, fail, get_config, unwrap
from pgbridge.core.exceptions import ValidationError


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def listen_command(
    ctx: typer.Context,
    channels: Annotated[
        list[str],
        typer.Argument(help="Channels to LISTEN on"),
    ],
    timeout: Annotated[
        int | None,
        typer.Option("--timeout", "-t", help="Wait per poll in milliseconds (> 0)"),
    ] = None,
    duration: Annotated[
        int,
        typer.Option("--duration", help="Stop after N seconds (0 = forever)"),
    ] = 0,
) -> None:
    """Listen for notifications and print each non-empty batch."""
    log = structlog.get_logger()
    resolved = get_config(ctx, timeout=timeout)
    if resolved.listen_timeout_ms <= 0:
        fail(ValidationError("listen needs a poll timeout > 0 ms"), capture=False)
    listen_sql = "; ".join(f"LISTEN {quote_ident(c)}" for c in channels)

    with connected_bridge(resolved) as bridge:
        unwrap(bridge.simple_query(listen_sql))
        log.info("listening", channels=channels, timeout_ms=resolved.listen_timeout_ms)

        deadline = time.monotonic() + duration if duration > 0 else None
        try:
            while deadline is None or time.monotonic() < deadline:
                blob = unwrap(bridge.notifications(resolved.listen_timeout_ms))
                if blob != b"[]":
                    sys.stdout.write(blob.decode("utf-8") + "\n")
                    sys.stdout.flush()
        except KeyboardInterrupt:
            log.info("interrupted")
