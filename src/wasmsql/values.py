"""Value models on both sides of the bridge.

- ScalarKind: the dynamically-typed SQLite value model
  (NULL, INTEGER, FLOAT, TEXT, BLOB)
- WasmKind/WasmScalar: the statically-typed WebAssembly numeric ABI
  (i32, i64, f32, f64)
- CallRequest: one call as handed over by the query engine
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from wasmtime import Val, ValType

from wasmsql.errors import ArityError

# Python representation of a SQLite value
ScalarValue = Union[None, int, float, str, bytes]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ScalarKind(enum.Enum):
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BLOB = "blob"


def scalar_kind(value: Any) -> ScalarKind | None:
    """Classify a Python value the way sqlite3 hands it to functions.

    Returns None for values that have no SQLite counterpart.
    """
    if value is None:
        return ScalarKind.NULL
    # bool is an int subclass, sqlite3 stores it as an integer too
    if isinstance(value, int):
        return ScalarKind.INTEGER
    if isinstance(value, float):
        return ScalarKind.FLOAT
    if isinstance(value, str):
        return ScalarKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ScalarKind.BLOB
    return None


class WasmKind(enum.Enum):
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"

    def valtype(self) -> ValType:
        return _VALTYPE_FACTORIES[self]()

    @classmethod
    def from_valtype(cls, ty: ValType) -> WasmKind | None:
        """Map a runtime value type to a numeric kind (None for refs/v128)."""
        for kind in cls:
            if ty == kind.valtype():
                return kind
        return None


_VALTYPE_FACTORIES = {
    WasmKind.I32: ValType.i32,
    WasmKind.I64: ValType.i64,
    WasmKind.F32: ValType.f32,
    WasmKind.F64: ValType.f64,
}

_VAL_FACTORIES = {
    WasmKind.I32: Val.i32,
    WasmKind.I64: Val.i64,
    WasmKind.F32: Val.f32,
    WasmKind.F64: Val.f64,
}


@dataclass(frozen=True)
class WasmScalar:
    """A single typed WebAssembly parameter or result.

    Attributes:
        kind: Numeric ABI type.
        value: Payload (int for integer kinds, float for float kinds).
    """

    kind: WasmKind
    value: int | float

    def to_val(self) -> Val:
        """Wrap the payload in a typed runtime value."""
        return _VAL_FACTORIES[self.kind](self.value)


@dataclass(frozen=True)
class CallRequest:
    """One invocation of the SQL function.

    Attributes:
        source: Module source (WAT text or binary).
        export_name: Name of the exported function to call.
        arguments: Remaining positional arguments, in call order.
    """

    source: Any
    export_name: Any
    arguments: tuple[ScalarValue, ...]

    @classmethod
    def from_arguments(cls, args: Sequence[Any]) -> CallRequest:
        """Split the caller's positional arguments.

        Args:
            args: All arguments of the call, source and export name first.

        Returns:
            The request.

        Raises:
            ArityError: If fewer than two arguments were given.
        """
        if len(args) < 2:
            msg = (
                "run_wasm needs at least 2 arguments - the Wasm source code "
                f"and the function name (got {len(args)})"
            )
            raise ArityError(msg)
        return cls(source=args[0], export_name=args[1], arguments=tuple(args[2:]))
