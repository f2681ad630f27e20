"""Type coercion and validation utilities for configuration loading.

This module provides utilities for loading environment variables according
to the ConfigSchema, including automatic type coercion and validation.

Errors are raised with clear messages to help users fix configuration issues.
"""

import os
from collections.abc import Mapping
from typing import Any

from openrouter_proxy.core.config.schema import ConfigSchema, EnvVarSpec
from openrouter_proxy.core.errors import ConfigError

__all__ = ["ConfigError", "load_env_var", "load_all_specs", "validate_all"]


def _parse_bool(value: str) -> bool:
    """Parse string to boolean.

    Returns:
        True if value is "true", "1", "yes", or "on" (case-insensitive)
        False otherwise
    """
    return value.lower() in ("true", "1", "yes", "on")


def load_env_var(spec: EnvVarSpec, environ: Mapping[str, str] | None = None) -> Any:
    """Load and validate a single environment variable.

    This function:
    1. Reads the environment variable
    2. Uses the default if not set
    3. Coerces the string value to the target type
    4. Runs custom validation if provided
    5. Raises ConfigError with clear message if anything fails

    Args:
        spec: Environment variable specification from ConfigSchema
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated and coerced value

    Raises:
        ConfigError: If validation fails or type conversion is impossible
    """
    source = os.environ if environ is None else environ
    raw_value = source.get(spec.name)

    # Use default if not set; empty strings count as unset for optional values
    if raw_value is None or (raw_value == "" and spec.default is None):
        return spec.default

    try:
        if spec.type_hint is bool:
            value = _parse_bool(raw_value)
        elif spec.type_hint is int:
            value = int(raw_value)
        elif spec.type_hint is float:
            value = float(raw_value)
        else:
            value = raw_value
    except (ValueError, TypeError) as e:
        raise ConfigError(
            spec.name,
            raw_value,
            f"Cannot convert to {spec.type_hint.__name__}: {e}",
        ) from e

    if spec.validator is not None:
        try:
            if not spec.validator(value):
                raise ConfigError(
                    spec.name,
                    raw_value,
                    f"Validation failed for type {spec.type_hint.__name__}",
                )
        except TypeError as e:
            raise ConfigError(
                spec.name,
                raw_value,
                f"Validation error: {e}",
            ) from e

    return value


def load_all_specs(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load all environment variables according to schema.

    Values that failed validation are returned as ConfigError instances so
    callers can report every problem at once.
    """
    result: dict[str, Any] = {}
    for name, spec in ConfigSchema.all_specs().items():
        try:
            result[name] = load_env_var(spec, environ)
        except ConfigError as e:
            result[name] = e
    return result


def validate_all(environ: Mapping[str, str] | None = None) -> list[ConfigError]:
    """Validate all environment variables and return any errors."""
    return [
        value for value in load_all_specs(environ).values() if isinstance(value, ConfigError)
    ]
