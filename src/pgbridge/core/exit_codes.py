"""Process exit codes for the pgbridge CLI.

Each BridgeError subclass maps onto one of these values.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for pgbridge commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    VALIDATION_ERROR = 3
    SERIALIZATION_ERROR = 4
    CONNECTION_ERROR = 5
    NOT_CONNECTED = 6
    QUERY_ERROR = 7
    PROTOCOL_ERROR = 8
    CONFIG_ERROR = 9
