from __future__ import annotations

import json

import typer

from pgbridge.cli.commands._shared import connected_bridge, get_config, unwrap


def status_command(ctx: typer.Context) -> None:
    """Connect and report connection state and server version."""
    resolved = get_config(ctx)
    with connected_bridge(resolved) as bridge:
        blob = unwrap(bridge.simple_query("SHOW server_version"))
        (row,) = json.loads(blob)
        typer.echo(f"Connected: {str(bridge.connected).lower()}")
        typer.echo(f"Server version: {row['server_version']}")
        typer.echo(f"Profile: {resolved.active_profile or 'none'}")
