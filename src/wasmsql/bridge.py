"""The call pipeline: load, look up, marshal, invoke, unmarshal."""

from __future__ import annotations

import logging
from typing import Any

from wasmsql.config import ExecutionLimits
from wasmsql.errors import WasmCallError
from wasmsql.invoke import invoke, lookup_export
from wasmsql.loader import CallState, load_module
from wasmsql.marshal import marshal_arguments, unmarshal_result
from wasmsql.values import CallRequest

logger = logging.getLogger(__name__)


def execute(request: CallRequest, limits: ExecutionLimits | None = None) -> int | float:
    """Run one request in a fresh execution context.

    Args:
        request: Source, export name and arguments.
        limits: Execution budget (default: unbounded).

    Returns:
        The function result as an int or float.

    Raises:
        WasmCallError: Any failure of the call, see wasmsql.errors.
    """
    # marshal first so bad arguments fail without compiling anything
    params = marshal_arguments(request.arguments)

    with load_module(request.source, limits) as ctx:
        try:
            func = lookup_export(ctx, request.export_name)
            result = invoke(ctx, func, params)
        finally:
            if not ctx.state.terminal:
                ctx.transition(CallState.FAILED)

    return unmarshal_result(result)


def call(*args: Any, limits: ExecutionLimits | None = None) -> int | float:
    """Call an exported WebAssembly function.

    Example:
        >>> call('(module (func (export "double") (param i64) (result i64) '
        ...      'local.get 0 i64.const 2 i64.mul))', "double", 21)
        42

    Args:
        *args: Module source, export name, then the function arguments
            (None, int or float).
        limits: Execution budget (default: unbounded).

    Returns:
        The function result as an int or float.

    Raises:
        WasmCallError: Any failure of the call, see wasmsql.errors.
    """
    request = CallRequest.from_arguments(args)
    try:
        return execute(request, limits)
    except WasmCallError as e:
        logger.debug("call to %r failed: %s", request.export_name, e)
        raise
