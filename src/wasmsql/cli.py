"""Command-line interface.

Provides the `wasmsql` command with subcommands for:
- Running the SQL demo
- Calling an export of a module file directly
- Running SQL with the function registered
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from pathlib import Path
from typing import Any

from wasmsql.bridge import call
from wasmsql.config import BridgeConfig, load_config
from wasmsql.demo import run_demo
from wasmsql.errors import ConfigError, WasmCallError
from wasmsql.sqlite import register


def parse_value(text: str) -> Any:
    """Parse a command-line argument as a SQL value (int, float or NULL)."""
    if text.lower() == "null":
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def _load_config(args: argparse.Namespace) -> BridgeConfig:
    if args.config:
        return load_config(args.config)
    return BridgeConfig()


def cmd_demo(args: argparse.Namespace) -> int:
    """Run the Fibonacci demo query."""
    config = _load_config(args)
    rows = run_demo(args.db, config)

    print("Results:")
    for n, value in rows:
        print(f"\tfib({n}) = {value}")
    return 0


def cmd_call(args: argparse.Namespace) -> int:
    """Call an export of a .wat or .wasm file."""
    config = _load_config(args)
    path = Path(args.module)
    if path.suffix == ".wasm":
        source: str | bytes = path.read_bytes()
    else:
        source = path.read_text()

    values = [parse_value(v) for v in args.args]
    result = call(source, args.export, *values, limits=config.limits)
    print(result)
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    """Run a SQL statement with the function registered."""
    config = _load_config(args)
    conn = sqlite3.connect(args.db)
    try:
        function = register(conn, config)
        try:
            cursor = conn.execute(args.sql)
            for row in cursor:
                print("\t".join("NULL" if v is None else str(v) for v in row))
            conn.commit()
        except sqlite3.Error as e:
            cause = function.last_error
            print(f"Error: {cause or e}", file=sys.stderr)
            return 1
    finally:
        conn.close()
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wasmsql",
        description="Call WebAssembly functions from SQLite queries",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML configuration",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # demo command
    demo_parser = subparsers.add_parser("demo", help="Run the Fibonacci demo")
    demo_parser.add_argument(
        "--db",
        default=":memory:",
        help="SQLite database path (default: :memory:, nothing is written to disk)",
    )
    demo_parser.set_defaults(func=cmd_demo)

    # call command
    call_parser = subparsers.add_parser("call", help="Call an exported function")
    call_parser.add_argument("module", help="Path to a .wat or .wasm file")
    call_parser.add_argument("export", help="Name of the exported function")
    call_parser.add_argument(
        "args",
        nargs="*",
        help="Arguments (integers, floats or 'null')",
    )
    call_parser.set_defaults(func=cmd_call)

    # query command
    query_parser = subparsers.add_parser("query", help="Run SQL with run_wasm()")
    query_parser.add_argument("db", help="SQLite database path")
    query_parser.add_argument("sql", help="SQL statement")
    query_parser.set_defaults(func=cmd_query)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (WasmCallError, ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
