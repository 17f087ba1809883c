"""Chat adapter abstraction layer."""

from recollect.llm.anthropic import AnthropicChatAdapter
from recollect.llm.base import ChatAdapter
from recollect.llm.errors import TransportError
from recollect.llm.openai import OpenAIChatAdapter
from recollect.llm.registry import ChatApiName, create_chat_adapter
from recollect.llm.retry import RetryConfig, is_retryable_error, with_retry
from recollect.llm.types import (
    AdapterResponse,
    Role,
    ToolCallRequest,
    ToolDefinition,
)

__all__ = [
    # Base
    "ChatAdapter",
    "TransportError",
    # Adapters
    "AnthropicChatAdapter",
    "OpenAIChatAdapter",
    # Registry
    "ChatApiName",
    "create_chat_adapter",
    # Retry
    "RetryConfig",
    "is_retryable_error",
    "with_retry",
    # Types
    "AdapterResponse",
    "Role",
    "ToolCallRequest",
    "ToolDefinition",
]
