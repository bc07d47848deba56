"""Configuration for the pgbridge CLI.

The bridge itself takes an opaque connection string; this module builds one
for the CLI from a TOML config file, named profiles and command-line flags.
Connection parameters are plain libpq keywords, so anything libpq accepts
(``host``, ``port``, ``sslmode``, ``target_session_attrs`` ...) can be set in
a profile. Keywords left unset fall through to libpq's own ``PG*``
environment variables and defaults when the connection is opened.

Precedence order (highest to lowest):
1. CLI flags (--host, --port, etc.)
2. --dsn flag
3. Named profile (--profile, PGBRIDGE_PROFILE or default_profile)
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import psycopg
from psycopg.conninfo import conninfo_to_dict, make_conninfo
from pydantic import BaseModel, ConfigDict, field_validator

from pgbridge.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pgbridge" / "config.toml"

PROFILE_ENV = "PGBRIDGE_PROFILE"

_CLI_KEYWORDS: dict[str, str] = {
    "host": "host",
    "port": "port",
    "database": "dbname",
    "user": "user",
    "password": "password",  # pragma: allowlist secret
    "sslmode": "sslmode",
}


def parse_conninfo(conninfo: str) -> dict[str, str]:
    """Split a key/value string or postgresql:// URL into libpq keywords."""
    try:
        params = conninfo_to_dict(conninfo)
    except psycopg.ProgrammingError as e:
        raise ConfigError(f"Invalid connection string: {e}") from e
    return {key: str(value) for key, value in params.items()}


class PgProfile(BaseModel):
    """A named connection: an optional dsn plus any libpq keywords."""

    model_config = ConfigDict(extra="allow")

    dsn: str | None = None

    @field_validator("dsn")
    @classmethod
    def validate_dsn(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                conninfo_to_dict(v)
            except psycopg.ProgrammingError as e:
                raise ValueError(f"Invalid dsn: {e}") from e
        return v

    def params(self) -> dict[str, str]:
        """Keywords from dsn, overridden by the keywords set explicitly."""
        params = parse_conninfo(self.dsn) if self.dsn else {}
        params.update({k: str(v) for k, v in (self.model_extra or {}).items()})
        return params


class AppConfig(BaseModel):
    log_level: str | None = None
    listen_timeout_ms: int = 1000
    default_profile: str | None = None
    profiles: dict[str, PgProfile] = {}

    @field_validator("listen_timeout_ms")
    @classmethod
    def validate_listen_timeout(cls, v: int) -> int:
        if v < 0:
            msg = f"Invalid listen_timeout_ms: {v}. Must be >= 0"
            raise ValueError(msg)
        return v


class ResolvedConfig(BaseModel):
    params: dict[str, str] = {}
    log_level: str | None = None
    listen_timeout_ms: int = 1000
    active_profile: str | None = None

    @property
    def conninfo(self) -> str:
        """libpq key/value connection string for PgBridge.connect()."""
        return make_conninfo(**self.params)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Merge profile, --dsn and CLI flags into one set of libpq keywords."""
    params: dict[str, str] = {}

    effective_profile = (
        profile_name or os.environ.get(PROFILE_ENV) or config.default_profile
    )
    if effective_profile:
        if effective_profile not in config.profiles:
            available = ", ".join(sorted(config.profiles)) or "none"
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        params.update(config.profiles[effective_profile].params())

    if dsn:
        params.update(parse_conninfo(dsn))

    for cli_name, keyword in _CLI_KEYWORDS.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            params[keyword] = str(value)

    try:
        make_conninfo(**params)
    except psycopg.ProgrammingError as e:
        raise ConfigError(f"Invalid connection parameters: {e}") from e

    timeout = cli_overrides.get("timeout")
    return ResolvedConfig(
        params=params,
        log_level=config.log_level,
        listen_timeout_ms=config.listen_timeout_ms if timeout is None else timeout,
        active_profile=effective_profile,
    )
