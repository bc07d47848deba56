"""Tests for simple-query execution and value decoding."""

import datetime
import json
import uuid
from decimal import Decimal
from types import SimpleNamespace

import psycopg
import pytest
from psycopg import pq

from pgbridge.core.connection import ConnectionManager
from pgbridge.core.exceptions import NotConnectedError, QueryError
from pgbridge.core.executor import QueryExecutor, decode_value, iter_messages
from pgbridge.core.models import CommandComplete, Row
from pgbridge.core.serializer import ResultSerializer
from tests.fakes import FakeCursor, command, rows

_COPY_REFUSED = psycopg.NotSupportedError(
    "COPY cannot be used with this method; use copy() instead"
)


@pytest.fixture
def manager(fake_conn):
    m = ConnectionManager()
    m._connection = fake_conn
    return m


@pytest.fixture
def executor(manager):
    return QueryExecutor(manager, ResultSerializer())


@pytest.mark.unit
class TestDecodeValue:
    @pytest.mark.parametrize("val", [None, True, False, 0, -7, 2**40, "text", ""])
    def test_passthrough(self, val):
        assert decode_value(val) == val
        assert type(decode_value(val)) is type(val)

    def test_float(self):
        assert decode_value(1.25) == 1.25

    def test_non_finite_float(self):
        assert decode_value(float("nan")) == "NaN"
        assert decode_value(float("inf")) == "Infinity"
        assert decode_value(float("-inf")) == "-Infinity"

    def test_decimal_keeps_precision(self):
        assert decode_value(Decimal("12345678901234567890.123")) == (
            "12345678901234567890.123"
        )

    def test_json_object(self):
        assert decode_value({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_array(self):
        assert decode_value([1, None, 3]) == "[1,null,3]"

    def test_bytes_hex(self):
        assert decode_value(b"\x00\xff") == "\\x00ff"
        assert decode_value(memoryview(b"\x01")) == "\\x01"

    def test_other_types_stringified(self):
        u = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert decode_value(u) == "12345678-1234-5678-1234-567812345678"
        assert decode_value(datetime.date(2024, 1, 2)) == "2024-01-02"


@pytest.mark.unit
class TestIterMessages:
    def test_rows(self):
        cur = FakeCursor([rows(["a", "b"], (1, "x"), (2, "y"))])
        assert list(iter_messages(cur)) == [
            Row(columns=[("a", 1), ("b", "x")]),
            Row(columns=[("a", 2), ("b", "y")]),
        ]

    def test_select_emits_no_count(self):
        cur = FakeCursor([rows(["a"], (1,))])
        messages = list(iter_messages(cur))
        assert not any(isinstance(m, CommandComplete) for m in messages)

    def test_command(self):
        cur = FakeCursor([command(4)])
        assert list(iter_messages(cur)) == [CommandComplete(rows_affected=4)]

    def test_unknown_rowcount_is_zero(self):
        cur = FakeCursor([command(-1)])
        assert list(iter_messages(cur)) == [CommandComplete(rows_affected=0)]

    def test_multiple_result_sets_in_order(self):
        cur = FakeCursor(
            [command(0), command(2), rows(["v"], (1,), (2,)), command(1)]
        )
        assert list(iter_messages(cur)) == [
            CommandComplete(rows_affected=0),
            CommandComplete(rows_affected=2),
            Row(columns=[("v", 1)]),
            Row(columns=[("v", 2)]),
            CommandComplete(rows_affected=1),
        ]

    def test_empty_row_set(self):
        cur = FakeCursor([rows(["v"])])
        assert list(iter_messages(cur)) == []


@pytest.mark.unit
class TestSimpleQuery:
    def test_not_connected(self):
        executor = QueryExecutor(ConnectionManager(), ResultSerializer())
        with pytest.raises(NotConnectedError):
            executor.simple_query("SELECT 1")

    def test_select_alias(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor([rows(["one"], (1,))])
        assert executor.simple_query("SELECT 1 AS one") == b'[{"one":1}]'

    def test_select_anonymous(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor([rows(["?column?"], (2,))])
        assert executor.simple_query("SELECT 1+1") == b'[{"column_0":2}]'

    def test_update_count(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor([command(3)])
        assert executor.simple_query("UPDATE t SET x=1") == b"[3]"

    def test_executes_without_params(self, executor, fake_conn):
        executor.simple_query("SELECT 1; SELECT 2")
        assert fake_conn.cursor_obj.executed == [
            ("SELECT 1; SELECT 2", {"prepare": False})
        ]

    def test_duplicate_columns(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor([rows(["id", "id"], (1, 2))])
        blob = executor.simple_query("SELECT a.id, b.id FROM a, b")
        assert json.loads(blob) == [{"id": 1, "column_1": 2}]

    def test_engine_error_wrapped(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor(
            [], error=psycopg.errors.SyntaxError('syntax error at or near "SELEC"')
        )
        with pytest.raises(QueryError, match="SQL error: syntax error") as exc_info:
            executor.simple_query("SELEC 1")
        assert isinstance(exc_info.value.__cause__, psycopg.errors.SyntaxError)

    def test_connection_loss_wrapped(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor(
            [], error=psycopg.OperationalError("server closed the connection")
        )
        with pytest.raises(QueryError, match="server closed"):
            executor.simple_query("SELECT 1")


def _result(status):
    return SimpleNamespace(status=status)


@pytest.mark.unit
class TestBusySessionReset:
    @pytest.fixture
    def copy_out(self, fake_conn):
        fake_conn.cursor_obj = FakeCursor([], error=_COPY_REFUSED)
        fake_conn.info.transaction_status = pq.TransactionStatus.ACTIVE
        return fake_conn

    def test_idle_session_left_alone(self, executor, fake_conn):
        fake_conn.cursor_obj = FakeCursor(
            [], error=psycopg.errors.UndefinedTable('relation "nope" does not exist')
        )
        with pytest.raises(QueryError):
            executor.simple_query("SELECT * FROM nope")
        fake_conn.cancel_safe.assert_not_called()
        fake_conn.pgconn.get_result.assert_not_called()

    def test_copy_out_cancelled_and_drained(self, executor, copy_out):
        copy_out.pgconn.get_result.side_effect = [
            _result(pq.ExecStatus.COPY_OUT),
            _result(pq.ExecStatus.FATAL_ERROR),
            None,
        ]
        copy_out.pgconn.get_copy_data.side_effect = [
            (2, memoryview(b"1\n")),
            (-1, memoryview(b"")),
        ]
        with pytest.raises(QueryError, match="use copy\\(\\) instead"):
            executor.simple_query("COPY (SELECT 1) TO STDOUT")
        copy_out.cancel_safe.assert_called_once()
        assert copy_out.pgconn.get_copy_data.call_count == 2
        assert copy_out.pgconn.get_result.call_count == 3
        assert not copy_out.closed

    def test_copy_in_ended(self, executor, copy_out):
        copy_out.pgconn.get_result.side_effect = [
            _result(pq.ExecStatus.COPY_IN),
            _result(pq.ExecStatus.FATAL_ERROR),
            None,
        ]
        with pytest.raises(QueryError):
            executor.simple_query("COPY t FROM STDIN")
        copy_out.pgconn.put_copy_end.assert_called_once()
        assert not copy_out.closed

    def test_reset_failure_closes_connection(self, executor, manager, copy_out):
        copy_out.pgconn.get_result.side_effect = psycopg.OperationalError(
            "server closed the connection unexpectedly"
        )
        with pytest.raises(QueryError, match="use copy"):
            executor.simple_query("COPY (SELECT 1) TO STDOUT")
        assert copy_out.closed
        assert not manager.connected()
