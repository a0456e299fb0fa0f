"""Exception classes for the SQL-to-WebAssembly bridge.

Every failure of a call is raised as a subclass of ``WasmCallError``.
The ``kind`` attribute names the failure so that callers which only see
the message (e.g. through SQLite) can still tell the cases apart.
"""

from __future__ import annotations


class WasmCallError(Exception):
    """Base class for all per-call bridge failures."""

    kind = "WasmCallError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ArityError(WasmCallError):
    """Fewer than two arguments (source and export name) were supplied."""

    kind = "ArityError"


class CompileError(WasmCallError):
    """Module source failed to assemble or compile."""

    kind = "CompileError"


class InstantiationError(WasmCallError):
    """Module requires imports or its start function failed."""

    kind = "InstantiationError"


class ExportNotFound(WasmCallError):
    """No export with the requested name."""

    kind = "ExportNotFound"


class NotCallable(WasmCallError):
    """The export exists but is not a function."""

    kind = "NotCallable"


class UnsupportedArgumentType(WasmCallError):
    """An argument has no mapping to a WebAssembly parameter."""

    kind = "UnsupportedArgumentType"

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


class UnsupportedResultType(WasmCallError):
    """The function result has no mapping to a SQL value."""

    kind = "UnsupportedResultType"


class ResultArityError(WasmCallError):
    """The function produced something other than exactly one value."""

    kind = "ResultArityError"


class Trap(WasmCallError):
    """Runtime trap during execution (bad memory access, unreachable, ...)."""

    kind = "Trap"


class ConfigError(Exception):
    """Invalid bridge configuration."""
