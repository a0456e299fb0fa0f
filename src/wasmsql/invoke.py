"""Export lookup and invocation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from wasmtime import Func, Trap as RuntimeTrap, ValType, WasmtimeError

from wasmsql.errors import (
    ExportNotFound,
    InstantiationError,
    NotCallable,
    ResultArityError,
    Trap,
    UnsupportedResultType,
)
from wasmsql.loader import CallState, ExecutionContext
from wasmsql.values import WasmKind, WasmScalar

logger = logging.getLogger(__name__)


def lookup_export(ctx: ExecutionContext, name: Any) -> Func:
    """Find an exported function by name.

    Args:
        ctx: Instantiated execution context.
        name: Export name (str, or UTF-8 bytes).

    Returns:
        The exported function.

    Raises:
        ExportNotFound: If the module has no export of that name.
        NotCallable: If the export is not a function.
    """
    if isinstance(name, (bytes, bytearray)):
        name = bytes(name).decode("utf-8", errors="replace")
    if not isinstance(name, str):
        ctx.transition(CallState.FAILED)
        msg = f"export name must be text, got {type(name).__name__}"
        raise ExportNotFound(msg)

    if ctx.instance is None:
        ctx.transition(CallState.FAILED)
        msg = "module is not instantiated"
        raise InstantiationError(msg)

    export = ctx.instance.exports(ctx.store).get(name)
    if export is None:
        ctx.transition(CallState.FAILED)
        msg = f"module has no export named {name!r}"
        raise ExportNotFound(msg)
    if not isinstance(export, Func):
        ctx.transition(CallState.FAILED)
        msg = f"export {name!r} is a {type(export).__name__.lower()}, not a function"
        raise NotCallable(msg)
    return export


def _trap_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__


def expect_single_result(result_types: Sequence[ValType]) -> WasmKind:
    """Check a function's declared results before calling it.

    Returns:
        The numeric kind of the single result.

    Raises:
        ResultArityError: Unless exactly one result is declared.
        UnsupportedResultType: If the result is not a numeric type.
    """
    if len(result_types) != 1:
        msg = f"expected exactly one result, function returns {len(result_types)}"
        raise ResultArityError(msg)

    kind = WasmKind.from_valtype(result_types[0])
    if kind is None:
        # v128 and reference results cannot be converted by the runtime
        msg = "non-numeric results are not supported (expected i64 or f64)"
        raise UnsupportedResultType(msg)
    return kind


def invoke(
    ctx: ExecutionContext, func: Func, params: Sequence[WasmScalar]
) -> WasmScalar:
    """Call a function and capture its single typed result.

    Args:
        ctx: Execution context owning the function's store.
        func: Function returned by lookup_export().
        params: Marshalled parameters.

    Returns:
        The function's result.

    Raises:
        Trap: On a runtime trap, an exhausted budget, or parameters that do
            not match the function signature.
        ResultArityError: If the function does not return exactly one value.
        UnsupportedResultType: If the result is not a numeric type.
    """
    try:
        kind = expect_single_result(func.type(ctx.store).results)
    except (ResultArityError, UnsupportedResultType):
        ctx.transition(CallState.FAILED)
        raise

    ctx.transition(CallState.INVOKED)
    try:
        raw = func(ctx.store, *(p.to_val() for p in params))
    except RuntimeTrap as e:
        ctx.transition(CallState.TRAPPED)
        raise Trap(_trap_message(e)) from e
    except (WasmtimeError, TypeError) as e:
        # signature mismatches are reported by the embedding API itself
        ctx.transition(CallState.TRAPPED)
        raise Trap(_trap_message(e)) from e

    fuel = ctx.fuel_consumed()
    if fuel is not None:
        logger.debug("call consumed %d fuel", fuel)

    ctx.transition(CallState.SUCCEEDED)
    return WasmScalar(kind, raw)
