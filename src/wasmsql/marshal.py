"""Conversion between SQLite values and WebAssembly scalars.

The mapping is fixed and ignores the declared signature of the callee:

    INTEGER -> i64      i64 -> INTEGER
    FLOAT   -> f64      f64 -> FLOAT
    NULL    -> i32 0    i32, f32 -> unsupported
    TEXT, BLOB -> unsupported
"""

from __future__ import annotations

from collections.abc import Iterable

from wasmsql.errors import UnsupportedArgumentType, UnsupportedResultType
from wasmsql.values import (
    INT64_MAX,
    INT64_MIN,
    ScalarKind,
    ScalarValue,
    WasmKind,
    WasmScalar,
    scalar_kind,
)


def marshal_argument(value: ScalarValue, position: int | None = None) -> WasmScalar:
    """Convert one SQLite value into a WebAssembly parameter.

    Args:
        value: The SQLite value.
        position: Zero-based argument index, used in error messages.

    Returns:
        The typed parameter.

    Raises:
        UnsupportedArgumentType: For text, blob, out-of-range integers and
            values with no SQLite counterpart.
    """
    where = "" if position is None else f" at position {position}"
    kind = scalar_kind(value)

    if kind is ScalarKind.INTEGER:
        if not INT64_MIN <= value <= INT64_MAX:
            msg = f"integer argument{where} does not fit in 64 bits: {value}"
            raise UnsupportedArgumentType(msg, position)
        return WasmScalar(WasmKind.I64, int(value))
    if kind is ScalarKind.FLOAT:
        return WasmScalar(WasmKind.F64, value)
    if kind is ScalarKind.NULL:
        return WasmScalar(WasmKind.I32, 0)
    if kind in (ScalarKind.TEXT, ScalarKind.BLOB):
        msg = f"{kind.value} argument{where} cannot be passed to a Wasm function"
        raise UnsupportedArgumentType(msg, position)

    msg = f"argument{where} of type {type(value).__name__} is not a SQL value"
    raise UnsupportedArgumentType(msg, position)


def marshal_arguments(values: Iterable[ScalarValue]) -> list[WasmScalar]:
    """Convert arguments positionally, left to right."""
    return [marshal_argument(value, i) for i, value in enumerate(values)]


def unmarshal_result(result: WasmScalar) -> int | float:
    """Convert the function result back into a SQLite value.

    Raises:
        UnsupportedResultType: For i32 and f32 results.
    """
    if result.kind is WasmKind.I64:
        return int(result.value)
    if result.kind is WasmKind.F64:
        return float(result.value)
    msg = f"{result.kind.value} results are not supported (expected i64 or f64)"
    raise UnsupportedResultType(msg)
