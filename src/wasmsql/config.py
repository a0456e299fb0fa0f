"""Bridge configuration.

Settings are optional and may be loaded from a YAML file:

    function_name: run_wasm
    deterministic: true
    limits:
      max_fuel: 1000000
      timeout_ms: 5000
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from wasmsql.errors import ConfigError

DEFAULT_FUNCTION_NAME = "run_wasm"


@dataclass(frozen=True)
class ExecutionLimits:
    """Execution budget for a single call.

    Attributes:
        max_fuel: Fuel units available to the call (None = unbounded).
        timeout_ms: Wall-clock deadline in milliseconds (None = unbounded).
    """

    max_fuel: int | None = None
    timeout_ms: int | None = None

    @property
    def bounded(self) -> bool:
        return self.max_fuel is not None or self.timeout_ms is not None


UNLIMITED = ExecutionLimits()


@dataclass(frozen=True)
class BridgeConfig:
    """Configuration for registering the bridge with SQLite.

    Attributes:
        function_name: SQL name of the function.
        deterministic: Mark the function deterministic for the query planner
            (ignored when a wall-clock timeout is configured).
        limits: Execution budget applied to every call.
    """

    function_name: str = DEFAULT_FUNCTION_NAME
    deterministic: bool = True
    limits: ExecutionLimits = field(default_factory=ExecutionLimits)

    @property
    def sql_deterministic(self) -> bool:
        """Whether SQLite may treat the function as deterministic.

        False when a wall-clock timeout is set, since whether a call
        finishes in time depends on timing.
        """
        return self.deterministic and self.limits.timeout_ms is None


def _positive_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"limits.{key} must be a positive integer, got {value!r}"
        raise ConfigError(msg)
    return value


def parse_config(data: Any) -> BridgeConfig:
    """Build a configuration from an already-parsed mapping.

    Args:
        data: Mapping (or None for all defaults).

    Returns:
        BridgeConfig with defaults filled in.

    Raises:
        ConfigError: If a value is of the wrong type or out of range.
    """
    if data is None:
        return BridgeConfig()
    if not isinstance(data, dict):
        msg = f"configuration must be a mapping, got {type(data).__name__}"
        raise ConfigError(msg)

    function_name = data.get("function_name", DEFAULT_FUNCTION_NAME)
    if not isinstance(function_name, str) or not function_name.strip():
        msg = f"function_name must be a non-empty string, got {function_name!r}"
        raise ConfigError(msg)

    deterministic = data.get("deterministic", True)
    if not isinstance(deterministic, bool):
        msg = f"deterministic must be a boolean, got {deterministic!r}"
        raise ConfigError(msg)

    limits_data = data.get("limits") or {}
    if not isinstance(limits_data, dict):
        msg = "limits must be a mapping"
        raise ConfigError(msg)
    limits = ExecutionLimits(
        max_fuel=_positive_int(limits_data, "max_fuel"),
        timeout_ms=_positive_int(limits_data, "timeout_ms"),
    )

    return BridgeConfig(
        function_name=function_name.strip(),
        deterministic=deterministic,
        limits=limits,
    )


def load_config(config_path: Path | str) -> BridgeConfig:
    """Load bridge configuration from YAML.

    Args:
        config_path: Path to the YAML file.

    Returns:
        BridgeConfig.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with Path(config_path).open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        msg = f"cannot read configuration {config_path}: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"invalid YAML in {config_path}: {e}"
        raise ConfigError(msg) from e

    return parse_config(data)
