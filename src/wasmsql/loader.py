"""Module loader: assemble, compile and instantiate a module for one call.

Every call gets its own Engine, Store, Module and Instance, so no
globals or memory survive from one call to the next.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any

from wasmtime import (
    Config,
    Engine,
    Instance,
    Module,
    Store,
    Trap as RuntimeTrap,
    WasmtimeError,
    wat2wasm,
)

from wasmsql.config import UNLIMITED, ExecutionLimits
from wasmsql.errors import CompileError, InstantiationError

logger = logging.getLogger(__name__)

WASM_MAGIC = b"\x00asm"


class CallState(enum.Enum):
    """Lifecycle of a single call; every call ends in a terminal state."""

    IDLE = "idle"
    COMPILED = "compiled"
    INSTANTIATED = "instantiated"
    INVOKED = "invoked"
    SUCCEEDED = "succeeded"
    TRAPPED = "trapped"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (CallState.SUCCEEDED, CallState.TRAPPED, CallState.FAILED)


class ExecutionContext:
    """Engine, store, compiled module and instance owned by one call."""

    def __init__(
        self,
        engine: Engine,
        store: Store,
        module: Module,
        limits: ExecutionLimits,
    ) -> None:
        self.engine = engine
        self.store = store
        self.module = module
        self.limits = limits
        self.instance: Instance | None = None
        self.state = CallState.COMPILED
        self._deadline: threading.Timer | None = None

    def __enter__(self) -> ExecutionContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def transition(self, state: CallState) -> None:
        logger.debug("call state %s -> %s", self.state.value, state.value)
        self.state = state

    def start_deadline(self) -> None:
        """Arm the wall-clock deadline, if one is configured."""
        if self.limits.timeout_ms is None or self._deadline is not None:
            return
        self._deadline = threading.Timer(
            self.limits.timeout_ms / 1000, self.engine.increment_epoch
        )
        self._deadline.daemon = True
        self._deadline.start()

    def fuel_consumed(self) -> int | None:
        """Fuel used so far, or None when fuel is not metered."""
        if self.limits.max_fuel is None:
            return None
        return self.limits.max_fuel - self.store.get_fuel()

    def close(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None


def assemble(source: Any) -> bytes:
    """Turn module source into the binary module format.

    Args:
        source: WAT text (str), or bytes holding either a binary module
            or UTF-8 WAT text.

    Returns:
        Binary module bytes.

    Raises:
        CompileError: If the source is missing, of the wrong type, or is
            not valid WAT.
    """
    if source is None:
        msg = "module source is NULL"
        raise CompileError(msg)

    if isinstance(source, (bytearray, memoryview)):
        source = bytes(source)
    if isinstance(source, bytes):
        if source.startswith(WASM_MAGIC):
            return source
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"module source is neither a binary module nor UTF-8 text: {e}"
            raise CompileError(msg) from e

    if not isinstance(source, str):
        msg = f"module source must be text or blob, got {type(source).__name__}"
        raise CompileError(msg)

    try:
        return bytes(wat2wasm(source))
    except WasmtimeError as e:
        raise CompileError(str(e)) from e


def _make_engine(limits: ExecutionLimits) -> Engine:
    config = Config()
    if limits.max_fuel is not None:
        config.consume_fuel = True
    if limits.timeout_ms is not None:
        config.epoch_interruption = True
    return Engine(config)


def compile_module(
    source: Any, limits: ExecutionLimits = UNLIMITED
) -> ExecutionContext:
    """Compile source against a fresh engine and store.

    Raises:
        CompileError: If assembly or compilation fails.
    """
    wasm = assemble(source)
    engine = _make_engine(limits)
    try:
        module = Module(engine, wasm)
    except WasmtimeError as e:
        raise CompileError(str(e)) from e

    store = Store(engine)
    if limits.max_fuel is not None:
        store.set_fuel(limits.max_fuel)
    if limits.timeout_ms is not None:
        store.set_epoch_deadline(1)

    logger.debug("compiled module (%d bytes)", len(wasm))
    return ExecutionContext(engine, store, module, limits)


def instantiate(ctx: ExecutionContext) -> Instance:
    """Instantiate the context's module with no imports.

    Raises:
        InstantiationError: If the module declares imports, or its start
            function traps or fails.
    """
    imports = ctx.module.imports
    if imports:
        names = ", ".join(f"{imp.module}.{imp.name}" for imp in imports)
        ctx.transition(CallState.FAILED)
        msg = f"module requires imports, which are not supported: {names}"
        raise InstantiationError(msg)

    ctx.start_deadline()
    try:
        instance = Instance(ctx.store, ctx.module, [])
    except (RuntimeTrap, WasmtimeError) as e:
        ctx.transition(CallState.FAILED)
        raise InstantiationError(str(e)) from e

    ctx.instance = instance
    ctx.transition(CallState.INSTANTIATED)
    return instance


def load_module(source: Any, limits: ExecutionLimits | None = None) -> ExecutionContext:
    """Compile and instantiate a module for a single call.

    Args:
        source: WAT text or binary module.
        limits: Execution budget (default: unbounded).

    Returns:
        An instantiated ExecutionContext. Close it when the call is done.

    Raises:
        CompileError: If the source does not compile.
        InstantiationError: If the module cannot be instantiated.
    """
    ctx = compile_module(source, limits or UNLIMITED)
    try:
        instantiate(ctx)
    except InstantiationError:
        ctx.close()
        raise
    return ctx
