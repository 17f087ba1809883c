"""Shared test fixtures and factories."""

from pathlib import Path
from typing import Any

import pytest

from recollect.config.models import ChatConfig, RecollectConfig
from recollect.llm.base import ChatAdapter
from recollect.llm.types import AdapterResponse, ToolCallRequest
from recollect.memory.decision import DecisionMaker
from recollect.memory.journal import SessionJournal
from recollect.memory.types import CleanMessage, MemoryCategory, MessageRole

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def chat_config() -> ChatConfig:
    """Chat backend configuration with an inline key."""
    return ChatConfig(
        api="openai-completions",
        model="gpt-4o-mini",
        api_key="sk-test-key",
    )


@pytest.fixture
def recollect_config(tmp_path: Path, chat_config: ChatConfig) -> RecollectConfig:
    """Configuration pointing the memory root at a temp directory."""
    return RecollectConfig(chat=chat_config, db_path=tmp_path / "memory")


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
db_path = "/tmp/recollect-memory"
auto_capture = true

[chat]
api = "anthropic-messages"
model = "claude-haiku-4-5"
api_key = "sk-ant-test"
max_rounds = 3
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# Journal Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "memory"


@pytest.fixture
def journal(db_path: Path) -> SessionJournal:
    """A journal rooted in a temp directory."""
    return SessionJournal(db_path)


# =============================================================================
# Memory Backend Mocks
# =============================================================================


class MockMemoryOps:
    """In-memory MemoryOps that records every call.

    ``store`` rejects exact duplicates the way a real backend rejects
    near-duplicates; ``forget`` and ``update`` reject unknown ids.
    """

    def __init__(self, fail_with: Exception | None = None):
        self.memories: dict[str, str] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_with = fail_with
        self._next_id = 0

    def _new_id(self) -> str:
        self._next_id += 1
        return f"mem{self._next_id:05d}-0000-4000-8000-000000000000"

    async def store(
        self, text: str, category: MemoryCategory, importance: float
    ) -> str:
        self.calls.append(("store", (text, category, importance)))
        if self.fail_with is not None:
            raise self.fail_with
        if text in self.memories.values():
            raise ValueError("Duplicate memory: a similar entry already exists")
        memory_id = self._new_id()
        self.memories[memory_id] = text
        return memory_id

    async def forget(self, memory_id: str) -> bool:
        self.calls.append(("forget", (memory_id,)))
        if self.fail_with is not None:
            raise self.fail_with
        if memory_id not in self.memories:
            raise KeyError(f"Memory not found: {memory_id}")
        del self.memories[memory_id]
        return True

    async def update(
        self,
        memory_id: str,
        text: str,
        category: MemoryCategory,
        importance: float,
    ) -> str:
        self.calls.append(("update", (memory_id, text, category, importance)))
        if self.fail_with is not None:
            raise self.fail_with
        if memory_id not in self.memories:
            raise KeyError(f"Memory not found: {memory_id}")
        del self.memories[memory_id]
        new_id = self._new_id()
        self.memories[new_id] = text
        return new_id


@pytest.fixture
def memory_ops() -> MockMemoryOps:
    return MockMemoryOps()


# =============================================================================
# Chat Adapter Mocks
# =============================================================================


class ScriptedAdapter(ChatAdapter):
    """Chat adapter that replays queued responses.

    Once the script runs out it answers with a plain text reply, which ends
    the evaluation.
    """

    def __init__(
        self,
        responses: list[AdapterResponse | Exception] | None = None,
        system_prompt: str = "",
        user_prompt: str = "",
    ):
        super().__init__(model="scripted", tools=[])
        self.responses = list(responses or [])
        self.system_prompt = system_prompt
        self.user_prompt = user_prompt
        self.complete_calls = 0
        self.tool_results: list[tuple[str, str, bool]] = []

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def transcript(self) -> list[dict]:
        return [{"role": "user", "content": self.user_prompt}]

    async def complete(self) -> AdapterResponse:
        self.complete_calls += 1
        if not self.responses:
            return AdapterResponse(tool_calls=[], done=True, text="Nothing to store.")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def push_tool_result(self, tool_call_id: str, content: str, is_error: bool) -> None:
        self.tool_results.append((tool_call_id, content, is_error))


class AdapterFactoryRecorder:
    """Adapter factory that hands out one scripted adapter and remembers it."""

    def __init__(self, responses: list[AdapterResponse | Exception] | None = None):
        self.responses = responses or []
        self.adapters: list[ScriptedAdapter] = []

    def __call__(self, system_prompt: str, user_prompt: str) -> ScriptedAdapter:
        adapter = ScriptedAdapter(
            self.responses, system_prompt=system_prompt, user_prompt=user_prompt
        )
        self.adapters.append(adapter)
        return adapter

    @property
    def adapter(self) -> ScriptedAdapter:
        assert self.adapters, "no adapter was created"
        return self.adapters[-1]


class FixedClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


def make_decision_maker(
    ops: MockMemoryOps,
    responses: list[AdapterResponse | Exception] | None = None,
    *,
    max_rounds: int = 5,
    clock: FixedClock | None = None,
) -> tuple[DecisionMaker, AdapterFactoryRecorder]:
    """Factory for a decision maker wired to a scripted adapter."""
    factory = AdapterFactoryRecorder(responses)
    maker = DecisionMaker(
        ops, factory, max_rounds=max_rounds, clock=clock or FixedClock()
    )
    return maker, factory


# =============================================================================
# Message Factories
# =============================================================================


def user(text: str) -> CleanMessage:
    return CleanMessage(role=MessageRole.USER, text=text)


def assistant(text: str) -> CleanMessage:
    return CleanMessage(role=MessageRole.ASSISTANT, text=text)


def tool_call(
    name: str,
    args: dict[str, Any] | None = None,
    id: str = "call_1",
) -> ToolCallRequest:
    """Factory for creating tool call requests."""
    return ToolCallRequest(id=id, name=name, args=args or {})


def tool_round(*calls: ToolCallRequest, done: bool = False) -> AdapterResponse:
    """A model reply that requests ``calls``."""
    return AdapterResponse(tool_calls=list(calls), done=done)


# =============================================================================
# CLI Test Helpers
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
