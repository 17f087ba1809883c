"""OpenAI chat adapter (Chat Completions API)."""

import json
import logging
import time
from typing import Any

import openai

from recollect.llm.base import ChatAdapter
from recollect.llm.errors import TransportError
from recollect.llm.retry import RetryConfig
from recollect.llm.types import AdapterResponse, Role, ToolCallRequest, ToolDefinition

logger = logging.getLogger(__name__)


class OpenAIChatAdapter(ChatAdapter):
    """Adapter for ``chat.completions`` and OpenAI-compatible servers.

    The system prompt travels as the first transcript message and tool
    results are ``role=tool`` messages keyed by ``tool_call_id``.
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
        self._client = client or openai.AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._messages: list[dict[str, Any]] = [
            {"role": Role.SYSTEM.value, "content": system_prompt},
            {"role": Role.USER.value, "content": user_prompt},
        ]
        self._tools = self._convert_tools(tools)

    @property
    def name(self) -> str:
        return "openai-completions"

    @property
    def transcript(self) -> list[dict]:
        return self._messages

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema,
                },
            }
            for tool in tools
        ]

    def _parse_arguments(self, raw: str | None, tool_name: str) -> dict[str, Any]:
        if not raw:
            return {}
        try:
            args = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TransportError(
                f"Malformed arguments for tool {tool_name}: {e}", backend=self.name
            ) from e
        if not isinstance(args, dict):
            raise TransportError(
                f"Arguments for tool {tool_name} must be a JSON object",
                backend=self.name,
            )
        return args

    async def complete(self) -> AdapterResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": list(self._messages),
            "max_tokens": self.max_tokens,
        }
        if self._tools:
            kwargs["tools"] = self._tools
            kwargs["tool_choice"] = "auto"

        start_time = time.monotonic()
        response = await self._request(
            lambda: self._client.chat.completions.create(**kwargs)
        )
        duration_ms = int((time.monotonic() - start_time) * 1000)

        choices = getattr(response, "choices", None) or []
        if not choices:
            logger.debug("llm_empty_response", extra={"model": self.model})
            return AdapterResponse(tool_calls=[], done=True)

        choice = choices[0]
        message = choice.message

        tool_calls: list[ToolCallRequest] = []
        wire_calls: list[dict[str, Any]] = []
        for tc in message.tool_calls or []:
            if getattr(tc, "type", "function") != "function":
                continue
            tool_calls.append(
                ToolCallRequest(
                    id=tc.id,
                    name=tc.function.name,
                    args=self._parse_arguments(tc.function.arguments, tc.function.name),
                )
            )
            wire_calls.append(
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments or "{}",
                    },
                }
            )

        reply: dict[str, Any] = {
            "role": Role.ASSISTANT.value,
            "content": message.content,
        }
        if wire_calls:
            reply["tool_calls"] = wire_calls
        self._messages.append(reply)

        logger.debug(
            "llm_complete",
            extra={
                "provider": self.name,
                "model": self.model,
                "duration_ms": duration_ms,
                "tool_calls": len(tool_calls),
                "finish_reason": choice.finish_reason,
            },
        )

        return AdapterResponse(
            tool_calls=tool_calls,
            done=not tool_calls or choice.finish_reason == "stop",
            text=message.content or "",
        )

    def push_tool_result(self, tool_call_id: str, content: str, is_error: bool) -> None:
        # Chat Completions has no error flag; the "Error:" prefix carries it.
        self._messages.append(
            {
                "role": Role.TOOL.value,
                "tool_call_id": tool_call_id,
                "content": content,
            }
        )
