"""Exception hierarchy for pgbridge.

Bridge operations never let these escape to the host: they are turned into
Outcome values and recorded in the ErrorSink. The CLI maps exit_code onto the
process return value.
"""

from pgbridge.core.exit_codes import ExitCode


class BridgeError(Exception):
    """Base exception for all pgbridge errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConnectionError(BridgeError):
    """Malformed connection string, unreachable host, authentication failure."""

    exit_code: int = ExitCode.CONNECTION_ERROR


class NotConnectedError(BridgeError):
    """Operation attempted without a live connection."""

    exit_code: int = ExitCode.NOT_CONNECTED

    def __init__(self, message: str = "Not connected") -> None:
        super().__init__(message)


class ValidationError(BridgeError):
    """Caller input of the wrong type or out of range."""

    exit_code: int = ExitCode.VALIDATION_ERROR


class QueryError(BridgeError):
    """Server-side failure while executing SQL text."""

    exit_code: int = ExitCode.QUERY_ERROR


class ProtocolError(BridgeError):
    """Connection-level failure while waiting for or draining notifications."""

    exit_code: int = ExitCode.PROTOCOL_ERROR


class SerializationError(BridgeError):
    """Result could not be encoded."""

    exit_code: int = ExitCode.SERIALIZATION_ERROR


class ConfigError(BridgeError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
