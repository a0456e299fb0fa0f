"""SQLite integration: expose the bridge as a variadic SQL function.

    >>> conn = sqlite3.connect(":memory:")
    >>> run_wasm = register(conn)
    >>> conn.execute("SELECT run_wasm(?, 'double', 21)", (wat,)).fetchone()
    (42,)

sqlite3 reports a failing user function as a generic OperationalError,
so the typed error of the last failed call is kept per thread on
``WasmFunction.last_error``.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import Any

from wasmsql.bridge import execute
from wasmsql.config import DEFAULT_FUNCTION_NAME, BridgeConfig
from wasmsql.errors import WasmCallError
from wasmsql.values import CallRequest

logger = logging.getLogger(__name__)


class WasmFunction:
    """Callable registered with SQLite under the configured name."""

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig()
        self._local = threading.local()

    @property
    def name(self) -> str:
        return self.config.function_name

    @property
    def last_error(self) -> WasmCallError | None:
        """Error raised by the most recent call on this thread, if it failed."""
        return getattr(self._local, "last_error", None)

    def __call__(self, *args: Any) -> int | float:
        self._local.last_error = None
        try:
            request = CallRequest.from_arguments(args)
            return execute(request, self.config.limits)
        except WasmCallError as e:
            self._local.last_error = e
            logger.warning("%s() failed: %s", self.name, e)
            raise


def register(
    conn: sqlite3.Connection, config: BridgeConfig | None = None
) -> WasmFunction:
    """Register the bridge on a connection.

    Args:
        conn: SQLite connection.
        config: Function name, determinism flag and execution limits.

    Returns:
        The registered callable (inspect its last_error after a failure).
    """
    function = WasmFunction(config)
    if function.config.sql_deterministic:
        try:
            conn.create_function(function.name, -1, function, deterministic=True)
        except sqlite3.NotSupportedError:
            logger.debug("SQLite too old for deterministic functions")
            conn.create_function(function.name, -1, function)
    else:
        conn.create_function(function.name, -1, function)

    logger.debug("registered SQL function %s()", function.name)
    return function


def unregister(conn: sqlite3.Connection, name: str = DEFAULT_FUNCTION_NAME) -> None:
    """Remove a previously registered function from a connection."""
    conn.create_function(name, -1, None)
