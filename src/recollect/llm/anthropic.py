"""Anthropic chat adapter (Messages API)."""

import logging
import time
from typing import Any

import anthropic

from recollect.llm.base import ChatAdapter
from recollect.llm.errors import TransportError
from recollect.llm.retry import RetryConfig
from recollect.llm.types import AdapterResponse, Role, ToolCallRequest, ToolDefinition

logger = logging.getLogger(__name__)


class AnthropicChatAdapter(ChatAdapter):
    """Adapter for ``messages.create``.

    The system prompt is sent out of band. Tool results are ``tool_result``
    blocks inside a user message; results answering the same assistant turn
    share one user message, as the API requires.
    """

    def __init__(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDefinition],
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
        retry: RetryConfig | None = None,
        client: Any = None,
    ) -> None:
        super().__init__(model=model, tools=tools, max_tokens=max_tokens, retry=retry)
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key, base_url=base_url
        )
        self._system = system_prompt
        self._messages: list[dict[str, Any]] = [
            {"role": Role.USER.value, "content": user_prompt}
        ]
        self._tools = self._convert_tools(tools)

    @property
    def name(self) -> str:
        return "anthropic-messages"

    @property
    def transcript(self) -> list[dict]:
        return self._messages

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema,
            }
            for tool in tools
        ]

    def _convert_block(self, block: Any) -> dict[str, Any] | None:
        if block.type == "text":
            return {"type": "text", "text": block.text}
        if block.type == "tool_use":
            args = block.input if block.input is not None else {}
            if not isinstance(args, dict):
                raise TransportError(
                    f"Arguments for tool {block.name} must be a JSON object",
                    backend=self.name,
                )
            return {
                "type": "tool_use",
                "id": block.id,
                "name": block.name,
                "input": dict(args),
            }
        return None

    async def complete(self) -> AdapterResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self._system,
            "messages": list(self._messages),
        }
        if self._tools:
            kwargs["tools"] = self._tools
            kwargs["tool_choice"] = {"type": "auto"}

        start_time = time.monotonic()
        response = await self._request(lambda: self._client.messages.create(**kwargs))
        duration_ms = int((time.monotonic() - start_time) * 1000)

        content: list[dict[str, Any]] = []
        tool_calls: list[ToolCallRequest] = []
        texts: list[str] = []
        for block in response.content or []:
            converted = self._convert_block(block)
            if converted is None:
                continue
            content.append(converted)
            if converted["type"] == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=converted["id"],
                        name=converted["name"],
                        args=converted["input"],
                    )
                )
            else:
                texts.append(converted["text"])

        self._messages.append({"role": Role.ASSISTANT.value, "content": content})

        logger.debug(
            "llm_complete",
            extra={
                "provider": self.name,
                "model": self.model,
                "duration_ms": duration_ms,
                "tool_calls": len(tool_calls),
                "stop_reason": response.stop_reason,
            },
        )

        return AdapterResponse(
            tool_calls=tool_calls,
            done=not tool_calls or response.stop_reason != "tool_use",
            text="\n".join(texts),
        )

    def push_tool_result(self, tool_call_id: str, content: str, is_error: bool) -> None:
        block = {
            "type": "tool_result",
            "tool_use_id": tool_call_id,
            "content": content,
            "is_error": is_error,
        }
        last = self._messages[-1]
        if (
            last["role"] == Role.USER.value
            and isinstance(last["content"], list)
            and all(b.get("type") == "tool_result" for b in last["content"])
        ):
            last["content"].append(block)
            return
        self._messages.append({"role": Role.USER.value, "content": [block]})
