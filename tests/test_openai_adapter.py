"""Tests for the OpenAI chat adapter."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from recollect.llm.errors import TransportError
from recollect.llm.openai import OpenAIChatAdapter
from recollect.llm.retry import RetryConfig
from recollect.memory.tools import MEMORY_TOOLS


def make_tool_call(id: str, name: str, arguments: dict | str) -> SimpleNamespace:
    if isinstance(arguments, dict):
        arguments = json.dumps(arguments)
    return SimpleNamespace(
        id=id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def make_response(
    tool_calls: list | None = None,
    content: str | None = None,
    finish_reason: str = "tool_calls",
) -> SimpleNamespace:
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)]
    )


def make_adapter(*responses) -> tuple[OpenAIChatAdapter, MagicMock]:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    adapter = OpenAIChatAdapter(
        model="gpt-4o-mini",
        system_prompt="system",
        user_prompt="user",
        tools=MEMORY_TOOLS,
        retry=RetryConfig(enabled=False),
        client=client,
    )
    return adapter, client


class TestOpenAIRequest:
    """Tests for what the adapter sends."""

    async def test_initial_transcript(self):
        adapter, client = make_adapter(make_response(content="ok", finish_reason="stop"))
        await adapter.complete()

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][:2] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert kwargs["tool_choice"] == "auto"

    async def test_tools_use_function_schema(self):
        adapter, client = make_adapter(make_response(content="ok", finish_reason="stop"))
        await adapter.complete()

        tools = client.chat.completions.create.call_args.kwargs["tools"]
        assert [t["function"]["name"] for t in tools] == [
            "store_memory",
            "forget_memory",
            "update_memory",
        ]
        assert tools[0]["type"] == "function"
        assert tools[0]["function"]["parameters"]["required"] == [
            "text",
            "category",
            "importance",
        ]

    def test_name(self):
        adapter, _ = make_adapter()
        assert adapter.name == "openai-completions"


class TestOpenAIComplete:
    """Tests for response parsing and transcript growth."""

    async def test_parses_tool_calls(self):
        adapter, _ = make_adapter(
            make_response(
                [make_tool_call("call_1", "store_memory", {"text": "I use vim"})]
            )
        )
        response = await adapter.complete()

        assert not response.done
        assert len(response.tool_calls) == 1
        call = response.tool_calls[0]
        assert call.id == "call_1"
        assert call.name == "store_memory"
        assert call.args == {"text": "I use vim"}

    async def test_no_tool_calls_is_done(self):
        adapter, _ = make_adapter(
            make_response(content="Nothing to store", finish_reason="stop")
        )
        response = await adapter.complete()
        assert response.done
        assert response.tool_calls == []
        assert response.text == "Nothing to store"

    async def test_stop_with_tool_calls_is_done(self):
        adapter, _ = make_adapter(
            make_response(
                [make_tool_call("call_1", "store_memory", {"text": "x"})],
                finish_reason="stop",
            )
        )
        response = await adapter.complete()
        assert response.done
        assert len(response.tool_calls) == 1

    async def test_empty_choices_is_done(self):
        adapter, _ = make_adapter(SimpleNamespace(choices=[]))
        response = await adapter.complete()
        assert response.done
        assert response.tool_calls == []

    async def test_reply_appended_to_transcript(self):
        adapter, _ = make_adapter(
            make_response([make_tool_call("call_1", "forget_memory", {"memoryId": "a"})])
        )
        await adapter.complete()

        reply = adapter.transcript[-1]
        assert reply["role"] == "assistant"
        assert reply["tool_calls"][0]["id"] == "call_1"
        assert json.loads(reply["tool_calls"][0]["function"]["arguments"]) == {
            "memoryId": "a"
        }

    async def test_empty_arguments_parse_to_empty_dict(self):
        adapter, _ = make_adapter(
            make_response([make_tool_call("call_1", "store_memory", "")])
        )
        response = await adapter.complete()
        assert response.tool_calls[0].args == {}

    async def test_malformed_arguments_raise_transport_error(self):
        adapter, _ = make_adapter(
            make_response([make_tool_call("call_1", "store_memory", "{oops")])
        )
        with pytest.raises(TransportError, match="Malformed arguments"):
            await adapter.complete()

    async def test_non_object_arguments_raise_transport_error(self):
        adapter, _ = make_adapter(
            make_response([make_tool_call("call_1", "store_memory", "[1, 2]")])
        )
        with pytest.raises(TransportError):
            await adapter.complete()

    async def test_sdk_failure_becomes_transport_error(self):
        adapter, _ = make_adapter(RuntimeError("Invalid request"))
        with pytest.raises(TransportError) as exc_info:
            await adapter.complete()
        assert exc_info.value.backend == "openai-completions"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestOpenAIToolResults:
    """Tests for push_tool_result()."""

    async def test_tool_result_message(self):
        adapter, client = make_adapter(
            make_response([make_tool_call("call_1", "store_memory", {"text": "x"})]),
            make_response(content="done", finish_reason="stop"),
        )
        await adapter.complete()
        adapter.push_tool_result("call_1", "Success: store memory abc", False)
        await adapter.complete()

        sent = client.chat.completions.create.call_args.kwargs["messages"]
        assert sent[-1] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "content": "Success: store memory abc",
        }
        assert sent[-2]["role"] == "assistant"

    def test_error_result_keeps_prefix(self):
        adapter, _ = make_adapter()
        adapter.push_tool_result("call_1", "Error: text is required", True)
        assert adapter.transcript[-1]["content"] == "Error: text is required"
