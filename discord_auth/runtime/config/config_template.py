"""Configuration template substitution utilities."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from discord_auth.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    def replacer(match: re.Match[str]) -> str:
        expression = match.group(1)

        if ":-" in expression:
            name, default = expression.split(":-", 1)
            return os.getenv(name, default)

        if ":?" in expression:
            name, message = expression.split(":?", 1)
            value = os.getenv(name)
            if value is None:
                raise ValueError(f"Required environment variable {name}: {message}")
            return value

        value = os.getenv(expression)
        if value is None:
            raise ValueError(f"Required environment variable {expression} not set")
        return value

    return _PLACEHOLDER.sub(replacer, text)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """
    Load a YAML file with environment variable substitution.

    Args:
        file_path: Path to the YAML file

    Returns:
        Validated configuration

    Raises:
        ValueError: If required environment variables are missing or the
            document is not valid configuration
        FileNotFoundError: If the YAML file doesn't exist
    """
    content = file_path.read_text()

    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration {} for environment {}", file_path, env_mode)

    # DEVELOPMENT_FOO=bar overrides FOO while running in development
    prefix = f"{env_mode.upper()}_"
    for name, value in list(os.environ.items()):
        if name.startswith(prefix):
            os.environ[name[len(prefix):]] = value
            logger.debug("Set environment variable {} from {}", name[len(prefix):], name)

    substituted = substitute_env_vars(content)

    try:
        loaded = yaml.safe_load(substituted)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not loaded:
        raise ValueError("Failed to parse YAML")

    try:
        return ConfigData(**loaded.get("config", {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def validate_config_env_vars() -> dict[str, str]:
    """
    Report required environment variables that are not set.

    Returns:
        Dictionary of missing variables and their descriptions
    """
    required_vars = {
        "DISCORD_CLIENT_ID": "Discord OAuth2 client ID",
        "DISCORD_CLIENT_SECRET": "Discord OAuth2 client secret",
    }
    return {
        name: description
        for name, description in required_vars.items()
        if not os.getenv(name)
    }
