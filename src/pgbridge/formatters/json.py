"""JSON formatter: the wire encoding, optionally indented."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pgbridge.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator


class JSONFormatter:
    def __init__(self, pretty: bool = False) -> None:
        self.pretty = pretty

    def format(self, elements: list[Any]) -> Iterator[str]:
        if self.pretty:
            yield json.dumps(elements, indent=2, ensure_ascii=False)
        else:
            yield json.dumps(elements, ensure_ascii=False, separators=(",", ":"))


registry.register("json", JSONFormatter)
