"""Output format selection for result arrays."""

from __future__ import annotations

import json
import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pgbridge.formatters.base import Formatter


class OutputFormat(StrEnum):
    JSON = "json"
    TABLE = "table"


def get_formatter(
    format_flag: str | None = None,
    *,
    pretty: bool = False,
    width: int = 40,
) -> Formatter:
    """Build the formatter; JSON unless told otherwise."""
    # Import here to trigger registry population from formatter modules.
    import pgbridge.formatters.json  # noqa: F401
    import pgbridge.formatters.table  # noqa: F401
    from pgbridge.formatters.base import registry

    fmt_name = format_flag or OutputFormat.JSON.value
    kwargs: dict[str, object] = {}
    if fmt_name == "table":
        kwargs["width"] = width
    elif fmt_name == "json":
        kwargs["pretty"] = pretty
    return registry.get(fmt_name, **kwargs)


def write_blob(formatter: Formatter, blob: bytes) -> None:
    """Decode a result blob and write it to stdout through formatter."""
    for line in formatter.format(json.loads(blob)):
        sys.stdout.write(line + "\n")
