"""Configuration module."""

from recollect.config.loader import expand_env_vars, load_config, parse_config
from recollect.config.models import (
    ChatApi,
    ChatConfig,
    ConfigError,
    RecollectConfig,
)
from recollect.config.paths import (
    get_config_path,
    get_db_path,
    get_recollect_home,
)

__all__ = [
    "ChatApi",
    "ChatConfig",
    "ConfigError",
    "RecollectConfig",
    "expand_env_vars",
    "get_config_path",
    "get_db_path",
    "get_recollect_home",
    "load_config",
    "parse_config",
]
