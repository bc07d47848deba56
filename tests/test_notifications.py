"""Tests for NotificationDrain."""

import json

import psycopg
import pytest

from pgbridge.core.connection import ConnectionManager
from pgbridge.core.exceptions import NotConnectedError, ProtocolError, ValidationError
from pgbridge.core.notifications import NotificationDrain
from pgbridge.core.serializer import ResultSerializer
from tests.fakes import pg_notify


@pytest.fixture
def manager(fake_conn):
    m = ConnectionManager()
    m._connection = fake_conn
    return m


@pytest.fixture
def drain(manager):
    return NotificationDrain(manager, ResultSerializer())


@pytest.mark.unit
class TestValidation:
    def test_not_connected(self):
        drain = NotificationDrain(ConnectionManager(), ResultSerializer())
        with pytest.raises(NotConnectedError):
            drain.notifications(0)

    def test_not_connected_checked_before_timeout(self):
        drain = NotificationDrain(ConnectionManager(), ResultSerializer())
        with pytest.raises(NotConnectedError):
            drain.notifications(-1)

    def test_negative_timeout(self, drain, fake_conn):
        with pytest.raises(ValidationError, match="Timeout must be >= 0"):
            drain.notifications(-1)
        assert fake_conn.notifies_calls == []


@pytest.mark.unit
class TestNonBlocking:
    def test_empty(self, drain, fake_conn):
        assert drain.notifications(0) == b"[]"
        assert fake_conn.notifies_calls == [{"timeout": 0, "stop_after": None}]

    def test_returns_available_notifications_in_order(self, drain, fake_conn):
        fake_conn.queue_notifies(pg_notify("a", "1"), pg_notify("b", "2"))
        blob = drain.notifications(0)
        assert json.loads(blob) == [
            {"channel": "a", "payload": "1"},
            {"channel": "b", "payload": "2"},
        ]

    def test_does_not_wait_for_arrivals(self, drain, fake_conn):
        fake_conn.arrivals.append(pg_notify("late", "1"))
        assert drain.notifications(0) == b"[]"

    def test_drained_notifications_not_repeated(self, drain, fake_conn):
        fake_conn.queue_notifies(pg_notify("a", "1"))
        assert drain.notifications(0) != b"[]"
        assert drain.notifications(0) == b"[]"

    def test_non_ascii(self, drain, fake_conn):
        fake_conn.queue_notifies(pg_notify("канал", "данные"))
        blob = drain.notifications(0)
        assert json.loads(blob) == [{"channel": "канал", "payload": "данные"}]


@pytest.mark.unit
class TestBlocking:
    def test_timeout_with_nothing_returns_empty(self, drain, fake_conn):
        assert drain.notifications(100) == b"[]"
        assert fake_conn.notifies_calls == [{"timeout": 0.1, "stop_after": 1}]

    def test_waits_for_first_then_drains_rest(self, drain, fake_conn):
        fake_conn.arrivals.extend([pg_notify("a", "1"), pg_notify("a", "2")])
        blob = drain.notifications(5000)
        assert json.loads(blob) == [
            {"channel": "a", "payload": "1"},
            {"channel": "a", "payload": "2"},
        ]
        assert fake_conn.notifies_calls == [
            {"timeout": 5.0, "stop_after": 1},
            {"timeout": 0, "stop_after": None},
        ]

    def test_backlog_returned_before_waiting(self, drain, fake_conn):
        fake_conn.queue_notifies(pg_notify("early", "0"))
        fake_conn.arrivals.append(pg_notify("late", "1"))
        blob = drain.notifications(5000)
        assert [n["channel"] for n in json.loads(blob)] == ["early"]


@pytest.mark.unit
class TestFailures:
    def test_connection_lost(self, drain, fake_conn):
        fake_conn.notifies_error = psycopg.OperationalError(
            "consuming input failed: server closed the connection unexpectedly"
        )
        with pytest.raises(ProtocolError, match="Notification error: consuming input"):
            drain.notifications(0)

    def test_failure_while_waiting(self, drain, fake_conn):
        fake_conn.notifies_error = psycopg.OperationalError("connection lost")
        with pytest.raises(ProtocolError, match="connection lost"):
            drain.notifications(1000)
