"""pgbridge - PostgreSQL bridge for hosts without a SQL client."""

from pgbridge.__about__ import __version__

__all__ = ["__version__"]
