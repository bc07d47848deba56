from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

from pgbridge.cli.commands._shared import connected_bridge, fail, get_config, unwrap
from pgbridge.cli.output import OutputFormat, get_formatter, write_blob
from pgbridge.core.exceptions import ValidationError


def read_sql(inline: str | None, file_path: str | None) -> str:
    """SQL text from -e, then a file, then piped stdin."""
    if inline is not None:
        return inline
    if file_path is not None:
        p = Path(file_path)
        if not p.is_file():
            raise ValidationError(f"Query file not found: {file_path}")
        return p.read_text()
    if not sys.stdin.isatty():
        return sys.stdin.read()
    raise ValidationError("No query provided. Use -e, file path, or pipe to stdin.")


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL text"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: json|table"),
    ] = OutputFormat.JSON,
    pretty: Annotated[
        bool,
        typer.Option("--pretty", help="Indent JSON output"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
) -> None:
    """Execute SQL text (simple query) from file, inline (-e), or stdin."""
    try:
        sql = read_sql(execute, file)
    except ValidationError as exc:
        fail(exc)

    resolved = get_config(ctx)
    with connected_bridge(resolved) as bridge:
        blob = unwrap(bridge.simple_query(sql))

    write_blob(get_formatter(format.value, pretty=pretty, width=width), blob)
