"""Output formatters for pgbridge result arrays."""

from pgbridge.formatters.base import Formatter, FormatterRegistry, registry
from pgbridge.formatters.json import JSONFormatter
from pgbridge.formatters.table import TableFormatter
