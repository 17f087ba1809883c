"""Chat adapter factory."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import SecretStr

from recollect.llm.anthropic import AnthropicChatAdapter
from recollect.llm.base import ChatAdapter
from recollect.llm.openai import OpenAIChatAdapter
from recollect.llm.retry import RetryConfig
from recollect.llm.types import ToolDefinition

ChatApiName = Literal["openai-completions", "anthropic-messages"]

ADAPTERS: dict[str, type[OpenAIChatAdapter] | type[AnthropicChatAdapter]] = {
    "openai-completions": OpenAIChatAdapter,
    "anthropic-messages": AnthropicChatAdapter,
}


def create_chat_adapter(
    api: ChatApiName | str,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    tools: list[ToolDefinition],
    api_key: str | SecretStr | None = None,
    base_url: str | None = None,
    max_tokens: int = 4096,
    retry: RetryConfig | None = None,
    client: Any = None,
) -> ChatAdapter:
    """Create a fresh adapter whose transcript holds the two prompts.

    Args:
        api: Backend wire format.
        client: Pre-built SDK client (tests inject fakes here).

    Raises:
        ValueError: If ``api`` is not a known backend.
    """
    adapter_cls = ADAPTERS.get(api)
    if adapter_cls is None:
        known = ", ".join(sorted(ADAPTERS))
        raise ValueError(f"Unknown chat api: {api}. Known: {known}")

    key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key

    return adapter_cls(
        model=model,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        tools=tools,
        api_key=key,
        base_url=base_url,
        max_tokens=max_tokens,
        retry=retry,
        client=client,
    )
