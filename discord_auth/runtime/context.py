from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from discord_auth.runtime.config.config_data import ConfigData
from discord_auth.runtime.config.config_template import load_templated_yaml
from discord_auth.runtime.settings import EnvironmentVariables


@dataclass
class AppContext:
    """Application context containing configuration and other app-wide state."""

    config: ConfigData


def _load_default_config() -> ConfigData:
    config_path = Path(EnvironmentVariables().config_file)
    if not config_path.exists():
        logger.warning("{} not found, using built-in configuration defaults", config_path)
        return ConfigData()
    return load_templated_yaml(config_path)


_default_context = AppContext(config=_load_default_config())

_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=_default_context
)


def get_context() -> AppContext:
    """Get the current application context."""
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Set the current application context."""
    return _app_context.set(context)


def _explicit_fields(model: BaseModel) -> dict[str, Any]:
    """Collect the fields that were explicitly set, at every nesting level.

    A nested model that was mutated after construction is picked up even when
    its parent never recorded the field as set.
    """
    result: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_fields(value)
            if nested:
                result[name] = nested
            elif name in model.model_fields_set:
                result[name] = value.model_dump()
        elif name in model.model_fields_set:
            result[name] = model.model_dump(include={name})[name]
    return result


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_configs(base_config: ConfigData, override_config: ConfigData) -> ConfigData:
    """Overlay the explicitly set values of ``override_config`` on ``base_config``."""
    merged = _merge_dicts(base_config.model_dump(), _explicit_fields(override_config))
    return ConfigData.model_validate(merged)


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[None]:
    """Temporarily override the application configuration.

    Only explicitly set fields of ``config_override`` replace the current
    values; everything else is inherited.

    Example:
        override = ConfigData()
        override.discord.client_id = "test-client"
        with with_context(override):
            assert get_config().discord.client_id == "test-client"
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    merged_config = merge_configs(get_context().config, config_override)
    token = set_context(replace(get_context(), config=merged_config))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the entire current configuration."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    """Convenience function to get the current configuration."""
    return get_context().config
