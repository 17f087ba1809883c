"""Configuration loading from TOML files and environment variables."""

import os
import re
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from recollect.config.models import API_KEY_ENV_VARS, ConfigError, RecollectConfig
from recollect.config.paths import get_config_path

ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("recollect.toml"),  # Current directory
        get_config_path(),  # ~/.recollect/config.toml (or RECOLLECT_HOME)
    ]


def expand_env_vars(value: str) -> str:
    """Replace ``${NAME}`` references with environment values.

    Raises:
        ConfigError: If a referenced variable is unset or empty.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        env_value = os.environ.get(name)
        if not env_value:
            raise ConfigError(f"Environment variable {name} is not set")
        return env_value

    return ENV_REFERENCE.sub(_replace, value)


def _expand_tree(value: Any) -> Any:
    if isinstance(value, str):
        return expand_env_vars(value.strip())
    if isinstance(value, dict):
        return {key: _expand_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_tree(item) for item in value]
    return value


def _resolve_env_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Fill chat.api_key from the environment where not set in config."""
    chat = config.get("chat")
    if isinstance(chat, dict) and not chat.get("api_key"):
        env_var = API_KEY_ENV_VARS.get(chat.get("api", "openai-completions"))
        if env_var and (value := os.environ.get(env_var)):
            chat["api_key"] = SecretStr(value)
    return config


def parse_config(raw_config: dict[str, Any]) -> RecollectConfig:
    """Validate a raw config mapping (already decoded from TOML).

    Raises:
        ConfigError: If the mapping is invalid.
    """
    raw_config = _resolve_env_secrets(_expand_tree(raw_config))
    try:
        return RecollectConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None) -> RecollectConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations
            and falls back to defaults when none exists.

    Returns:
        Validated RecollectConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        return parse_config({})

    try:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    return parse_config(raw_config)
