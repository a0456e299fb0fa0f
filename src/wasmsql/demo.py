"""Demo: call a recursive Fibonacci module from a SQL query."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from wasmsql.config import BridgeConfig
from wasmsql.sqlite import register

FIB_WAT = """\
(module
  (type (;0;) (func (param i64) (result i64)))
  (func $fib (type 0) (param i64) (result i64)
    (local i64)
    i64.const 0
    local.set 1
    block  ;; label = @1
      local.get 0
      i64.const 2
      i64.lt_u
      br_if 0 (;@1;)
      i64.const 0
      local.set 1
      loop  ;; label = @2
        local.get 0
        i64.const -1
        i64.add
        call $fib
        local.get 1
        i64.add
        local.set 1
        local.get 0
        i64.const -2
        i64.add
        local.tee 0
        i64.const 1
        i64.gt_u
        br_if 0 (;@2;)
      end
    end
    local.get 0
    local.get 1
    i64.add)
  (memory (;0;) 16)
  (global $__stack_pointer (mut i32) (i32.const 1048576))
  (global (;1;) i32 (i32.const 1048576))
  (global (;2;) i32 (i32.const 1048576))
  (export "memory" (memory 0))
  (export "fib" (func $fib)))
"""

DEMO_IDS = (1, 2, 3, 4, 5)


def setup_table(conn: sqlite3.Connection) -> None:
    """Create and fill the wasm_test table."""
    conn.execute("CREATE TABLE IF NOT EXISTS wasm_test (id INT PRIMARY KEY)")
    conn.executemany(
        "INSERT OR REPLACE INTO wasm_test (id) VALUES (?)",
        [(i,) for i in DEMO_IDS],
    )
    conn.commit()


def run_demo(
    db_path: Path | str = ":memory:", config: BridgeConfig | None = None
) -> list[tuple[int, int]]:
    """Evaluate fib(id) in SQL for every row of wasm_test.

    Args:
        db_path: SQLite database path (default: in-memory).
        config: Bridge configuration (its function name is used in the query).

    Returns:
        List of (id, fib(id)) rows, ordered by id.
    """
    config = config or BridgeConfig()
    conn = sqlite3.connect(db_path)
    try:
        setup_table(conn)
        register(conn, config)
        query = (
            f"SELECT id, {config.function_name}(?, 'fib', id) "
            "FROM wasm_test ORDER BY id"
        )
        return [(row[0], row[1]) for row in conn.execute(query, (FIB_WAT,))]
    finally:
        conn.close()
