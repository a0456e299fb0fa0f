"""wasmsql: call WebAssembly functions from SQLite queries."""

from __future__ import annotations

from wasmsql.bridge import call, execute
from wasmsql.config import BridgeConfig, ExecutionLimits, load_config
from wasmsql.errors import (
    ArityError,
    CompileError,
    ConfigError,
    ExportNotFound,
    InstantiationError,
    NotCallable,
    ResultArityError,
    Trap,
    UnsupportedArgumentType,
    UnsupportedResultType,
    WasmCallError,
)
from wasmsql.sqlite import WasmFunction, register, unregister
from wasmsql.values import CallRequest

__all__ = [
    "ArityError",
    "BridgeConfig",
    "CallRequest",
    "CompileError",
    "ConfigError",
    "ExecutionLimits",
    "ExportNotFound",
    "InstantiationError",
    "NotCallable",
    "ResultArityError",
    "Trap",
    "UnsupportedArgumentType",
    "UnsupportedResultType",
    "WasmCallError",
    "WasmFunction",
    "call",
    "execute",
    "load_config",
    "register",
    "unregister",
]
