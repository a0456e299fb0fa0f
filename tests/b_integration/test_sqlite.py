"""Integration tests for the SQLite function (wasmsql.sqlite)."""

from __future__ import annotations

import sqlite3
import threading

import pytest

from wasmsql.config import BridgeConfig, ExecutionLimits
from wasmsql.errors import (
    ArityError,
    ExportNotFound,
    Trap,
    UnsupportedArgumentType,
)
from wasmsql.sqlite import register, unregister
from wat_samples import DOUBLE_WAT, ID_F64_WAT, IS_ZERO_WAT, OOB_WAT, SPIN_WAT

INDEX_SQL = "CREATE INDEX t_doubled ON t (run_wasm(src, 'double', x))"


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


class TestRegister:
    """Tests for registering the function."""

    def test_integer_result(self, conn) -> None:
        """Test an integer result in a SELECT."""
        register(conn)
        row = conn.execute("SELECT run_wasm(?, 'double', 21)", (DOUBLE_WAT,)).fetchone()
        assert row == (42,)

    def test_float_result(self, conn) -> None:
        """Test that float results are stored as REAL."""
        register(conn)
        row = conn.execute("SELECT run_wasm(?, 'id', 3.5)", (ID_F64_WAT,)).fetchone()
        assert row == (3.5,)
        assert conn.execute(
            "SELECT typeof(run_wasm(?, 'id', 3.5))", (ID_F64_WAT,)
        ).fetchone() == ("real",)

    def test_null_argument(self, conn) -> None:
        """Test passing a SQL NULL."""
        register(conn)
        row = conn.execute("SELECT run_wasm(?, 'is_zero', NULL)", (IS_ZERO_WAT,)).fetchone()
        assert row == (1,)

    def test_over_table_rows(self, conn) -> None:
        """Test calling the function once per row."""
        register(conn)
        conn.execute("CREATE TABLE t (x INTEGER)")
        conn.executemany("INSERT INTO t VALUES (?)", [(1,), (2,), (3,)])
        rows = conn.execute(
            "SELECT x, run_wasm(?, 'double', x) FROM t ORDER BY x", (DOUBLE_WAT,)
        ).fetchall()
        assert rows == [(1, 2), (2, 4), (3, 6)]

    def test_custom_name(self, conn) -> None:
        """Test registering under another SQL name."""
        function = register(conn, BridgeConfig(function_name="wasm", deterministic=False))
        assert function.name == "wasm"
        row = conn.execute("SELECT wasm(?, 'double', 5)", (DOUBLE_WAT,)).fetchone()
        assert row == (10,)

    def test_unregister(self, conn) -> None:
        """Test that an unregistered function is unknown to SQLite."""
        register(conn)
        unregister(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'double', 1)", (DOUBLE_WAT,))


class TestDeterminism:
    """Only deterministic functions may appear in index expressions."""

    def test_default_allows_index(self, conn) -> None:
        """Test that the default registration can back an expression index."""
        register(conn)
        conn.execute("CREATE TABLE t (src TEXT, x INTEGER)")
        conn.execute(INDEX_SQL)
        conn.execute("INSERT INTO t VALUES (?, 4)", (DOUBLE_WAT,))
        assert conn.execute("SELECT run_wasm(src, 'double', x) FROM t").fetchone() == (8,)

    def test_timeout_prevents_index(self, conn) -> None:
        """Test that a wall-clock timeout registers a non-deterministic function."""
        register(conn, BridgeConfig(limits=ExecutionLimits(timeout_ms=1_000)))
        conn.execute("CREATE TABLE t (src TEXT, x INTEGER)")
        with pytest.raises(sqlite3.OperationalError):
            conn.execute(INDEX_SQL)

    def test_fuel_allows_index(self, conn) -> None:
        """Test that a fuel budget keeps the function deterministic."""
        register(conn, BridgeConfig(limits=ExecutionLimits(max_fuel=10_000)))
        conn.execute("CREATE TABLE t (src TEXT, x INTEGER)")
        conn.execute(INDEX_SQL)


class TestErrors:
    """Failures surface as query errors with the typed cause kept."""

    def test_arity(self, conn) -> None:
        """Test that a one-argument call keeps an ArityError."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm('(module)')").fetchone()
        assert isinstance(function.last_error, ArityError)

    def test_missing_export(self, conn) -> None:
        """Test that a missing export keeps an ExportNotFound."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'nope', 1)", (DOUBLE_WAT,)).fetchone()
        assert isinstance(function.last_error, ExportNotFound)

    def test_text_argument(self, conn) -> None:
        """Test that a text argument keeps an UnsupportedArgumentType."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'double', 'x')", (DOUBLE_WAT,)).fetchone()
        assert isinstance(function.last_error, UnsupportedArgumentType)

    def test_trap(self, conn) -> None:
        """Test that a runtime trap keeps a Trap."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'oob', 0)", (OOB_WAT,)).fetchone()
        assert isinstance(function.last_error, Trap)

    def test_limits_from_config(self, conn) -> None:
        """Test that configured limits apply to SQL calls."""
        config = BridgeConfig(limits=ExecutionLimits(max_fuel=10_000))
        function = register(conn, config)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'spin')", (SPIN_WAT,)).fetchone()
        assert isinstance(function.last_error, Trap)

    def test_success_clears_error(self, conn) -> None:
        """Test that a successful call resets last_error."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'nope')", (DOUBLE_WAT,)).fetchone()
        conn.execute("SELECT run_wasm(?, 'double', 1)", (DOUBLE_WAT,)).fetchone()
        assert function.last_error is None

    def test_error_is_per_thread(self, conn) -> None:
        """Test that last_error is not visible from other threads."""
        function = register(conn)
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("SELECT run_wasm(?, 'nope')", (DOUBLE_WAT,)).fetchone()

        seen = []
        thread = threading.Thread(target=lambda: seen.append(function.last_error))
        thread.start()
        thread.join()

        assert seen == [None]
        assert isinstance(function.last_error, ExportNotFound)
