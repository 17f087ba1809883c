"""Configuration models using Pydantic."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from recollect.config.paths import get_db_path

ChatApi = Literal["openai-completions", "anthropic-messages"]

DEFAULT_CHAT_MODEL = "gpt-4o-mini"

# Environment fallback for chat.api_key, by backend
API_KEY_ENV_VARS: dict[str, str] = {
    "openai-completions": "OPENAI_API_KEY",
    "anthropic-messages": "ANTHROPIC_API_KEY",
}


class ConfigError(Exception):
    """Configuration error."""

    pass


class ChatConfig(BaseModel):
    """Chat backend used for memory decisions.

    ``base_url`` may point at any endpoint speaking the selected API
    (OpenAI-compatible servers for ``openai-completions``).
    """

    model_config = ConfigDict(extra="forbid")

    api: ChatApi = "openai-completions"
    model: str = DEFAULT_CHAT_MODEL
    api_key: SecretStr | None = None
    base_url: str | None = None
    max_tokens: int = Field(default=4096, gt=0)
    max_rounds: int = Field(default=5, ge=1, le=20)

    def resolve_api_key(self) -> SecretStr | None:
        """Resolve the API key, falling back to the backend's env var."""
        if self.api_key is not None and self.api_key.get_secret_value():
            return self.api_key
        env_value = os.environ.get(API_KEY_ENV_VARS[self.api])
        if env_value:
            return SecretStr(env_value)
        return None


class RecollectConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    chat: ChatConfig | None = None
    db_path: Path = Field(default_factory=get_db_path)
    auto_capture: bool = True

    @property
    def sessions_path(self) -> Path:
        return self.db_path.expanduser() / "sessions"
