"""Rich table formatter for result arrays.

Consecutive rows sharing the same keys are rendered as one table; affected
row counts are printed between them.
"""

from __future__ import annotations

import shutil
from io import StringIO
from itertools import groupby
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

from pgbridge.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

_NO_RESULTS = "No results"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


def _group_key(element: Any) -> tuple[str, ...] | None:
    if isinstance(element, dict):
        return tuple(element)
    return None


class TableFormatter:
    def __init__(self, width: int = 40) -> None:
        self.width = width

    def format(self, elements: list[Any]) -> Iterator[str]:
        if not elements:
            yield _NO_RESULTS
            return

        for keys, group in groupby(elements, key=_group_key):
            if keys is None:
                for count in group:
                    yield f"{count} rows affected"
                continue
            yield self._render(keys, list(group))

    def _render(self, keys: tuple[str, ...], rows: list[dict[str, Any]]) -> str:
        table = Table(show_edge=True, pad_edge=True)
        for key in keys:
            table.add_column(key, no_wrap=True)
        for row in rows:
            table.add_row(
                *(
                    _truncate(str(v) if v is not None else "", self.width)
                    for v in row.values()
                )
            )

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        return buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
