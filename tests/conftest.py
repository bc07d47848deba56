"""Shared test fixtures for pgbridge."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from pgbridge.cli.main import app
from tests.fakes import FakeConnection


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture(autouse=True)
def _no_pg_env(monkeypatch):
    """Keep the caller's PG* and PGBRIDGE_* variables out of the tests."""
    for var in (
        "PGHOST",
        "PGPORT",
        "PGDATABASE",
        "PGUSER",
        "PGPASSWORD",
        "PGBRIDGE_PROFILE",
        "PGBRIDGE_LOG_LEVEL",
        "PGBRIDGE_SENTRY_DSN",
    ):
        monkeypatch.delenv(var, raising=False)
