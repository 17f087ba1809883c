"""LLM-driven memory decisions.

A small private agent reads the unprocessed part of a conversation and
decides, through three tools (store_memory, forget_memory, update_memory),
what to write to long-term memory. Tool failures are reported back to the
model so it can correct itself on the next round.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from recollect.llm.registry import create_chat_adapter
from recollect.memory.errors import MemoryToolError, OperationError, UnknownToolError
from recollect.memory.tools import (
    FORGET_MEMORY,
    MEMORY_TOOLS,
    STORE_MEMORY,
    UPDATE_MEMORY,
    parse_forget_args,
    parse_store_args,
    parse_update_args,
)
from recollect.memory.types import (
    CleanMessage,
    JournalData,
    MemoryAction,
    MemoryLogEntry,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from recollect.config.models import ChatConfig
    from recollect.llm.base import ChatAdapter
    from recollect.llm.types import AdapterResponse, ToolCallRequest
    from recollect.memory.ops import MemoryOps

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ROUNDS = 5

NO_LOGS_PLACEHOLDER = "No memory operations in this session yet."

SYSTEM_PROMPT = """You are the memory manager of an AI assistant. Read new conversation messages and decide what belongs in long-term memory: what to store, what to update and what to remove.

Your tools: store_memory, forget_memory, update_memory.

RULES:
1. Make decisions ONLY about the messages under [NEW DELTA]. [CONTEXT] is background; [MEMORY LOGS] lists what was already done in this session.
2. Store the user's ORIGINAL wording from the conversation, not a summary or paraphrase.
3. SKIP greetings, acknowledgments, one-word replies, code blocks (unless they record a configuration or preference decision) and system-injected XML tags.
4. STORE explicit preferences ("I prefer...", "I like...", "I always..."), personal facts (name, email, phone), technical or architectural decisions and named entities.
5. When new information contradicts or refines a memory listed in [MEMORY LOGS], call update_memory with that memory's ID instead of store_memory.
6. Call forget_memory ONLY when the user explicitly asks you to forget something.
7. If nothing is worth remembering, reply with a short text message and make NO tool calls.
8. Importance: 0.9 for an explicit "remember this", 0.8 for preferences and decisions, 0.6 for facts and entities, 0.5 for anything else.
9. If a tool call fails, read the error and fix the call, pick another operation, or stop."""


class DecisionState(str, Enum):
    """States of one evaluation.

    INIT -> AWAITING_MODEL -> EXECUTING_TOOLS -> AWAITING_MODEL ...
    AWAITING_MODEL -> DRAINING -> DONE when a round has no tool calls or the
    backend says its turn is over; calls that came with a finished turn still
    run while draining. AWAITING_MODEL -> ABORTED_AT_CAP once the round
    budget is spent.
    """

    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DRAINING = "draining"
    DONE = "done"
    ABORTED_AT_CAP = "aborted_at_cap"


TERMINAL_STATES = frozenset({DecisionState.DONE, DecisionState.ABORTED_AT_CAP})


def next_state(
    state: DecisionState,
    *,
    rounds: int,
    max_rounds: int,
    response: AdapterResponse | None = None,
) -> DecisionState:
    """Transition function of the decision loop.

    ``rounds`` is the number of completed model calls; ``response`` is the
    reply just received when leaving AWAITING_MODEL.
    """
    if state is DecisionState.INIT:
        return DecisionState.AWAITING_MODEL
    if state is DecisionState.AWAITING_MODEL:
        if response is None:
            return (
                DecisionState.ABORTED_AT_CAP
                if rounds >= max_rounds
                else DecisionState.AWAITING_MODEL
            )
        if not response.tool_calls or response.done:
            return DecisionState.DRAINING
        return DecisionState.EXECUTING_TOOLS
    if state is DecisionState.EXECUTING_TOOLS:
        return DecisionState.AWAITING_MODEL
    if state is DecisionState.DRAINING:
        return DecisionState.DONE
    return state


@dataclass
class DecisionResult:
    """Operations executed by one evaluation, in execution order."""

    logs: list[MemoryLogEntry] = field(default_factory=list)
    state: DecisionState = DecisionState.DONE
    rounds: int = 0


AdapterFactory = Callable[[str, str], "ChatAdapter"]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _format_messages(messages: Sequence[CleanMessage]) -> str:
    return "\n".join(f"[{m.role.value}]: {m.text}" for m in messages)


def format_memory_logs(logs: Sequence[MemoryLogEntry]) -> str:
    if not logs:
        return NO_LOGS_PLACEHOLDER
    return "\n".join(
        f"- {entry.action.value} [{entry.memory_id[:8]}]: {entry.text[:80]}"
        for entry in logs
    )


def build_user_prompt(journal: JournalData, delta: Sequence[CleanMessage]) -> str:
    """Render the three labeled prompt sections.

    [CONTEXT] is omitted for an empty context; [MEMORY LOGS] always appears
    so the model knows nothing has been stored yet.
    """
    parts: list[str] = []
    if journal.clean_context:
        parts.append(f"[CONTEXT]\n{_format_messages(journal.clean_context)}")
    parts.append(f"[MEMORY LOGS]\n{format_memory_logs(journal.memory_logs)}")
    parts.append(f"[NEW DELTA]\n{_format_messages(delta)}")
    return "\n\n".join(parts)


class DecisionMaker:
    """Runs the bounded tool-calling loop for one journal delta at a time.

    Rounds and tool calls execute strictly one after another: a later call
    (say, an update) may rely on the effect of an earlier one in the same
    evaluation.
    """

    def __init__(
        self,
        ops: MemoryOps,
        adapter_factory: AdapterFactory,
        *,
        max_rounds: int = MAX_ROUNDS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self._ops = ops
        self._adapter_factory = adapter_factory
        self._max_rounds = max_rounds
        self._clock = clock

    @classmethod
    def from_config(
        cls, config: ChatConfig, ops: MemoryOps, *, client: Any = None
    ) -> DecisionMaker:
        """Build a decision maker talking to the configured chat backend."""
        api_key = config.resolve_api_key()

        def factory(system_prompt: str, user_prompt: str) -> ChatAdapter:
            return create_chat_adapter(
                config.api,
                model=config.model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                tools=MEMORY_TOOLS,
                api_key=api_key,
                base_url=config.base_url,
                max_tokens=config.max_tokens,
                client=client,
            )

        return cls(ops, factory, max_rounds=config.max_rounds)

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    async def evaluate(
        self, journal: JournalData, delta: Sequence[CleanMessage]
    ) -> DecisionResult:
        """Let the model act on ``delta`` and return what was executed.

        Raises:
            TransportError: If the chat backend fails; nothing executed so far
                is rolled back.
        """
        if not delta:
            return DecisionResult()

        adapter = self._adapter_factory(SYSTEM_PROMPT, build_user_prompt(journal, delta))
        delta_index = len(journal.clean_context)
        logs: list[MemoryLogEntry] = []
        rounds = 0
        pending: list[ToolCallRequest] = []

        state = next_state(DecisionState.INIT, rounds=0, max_rounds=self._max_rounds)
        while state not in TERMINAL_STATES:
            if state is DecisionState.AWAITING_MODEL:
                if rounds >= self._max_rounds:
                    state = next_state(
                        state, rounds=rounds, max_rounds=self._max_rounds
                    )
                    continue
                response = await adapter.complete()
                rounds += 1
                pending = list(response.tool_calls)
                state = next_state(
                    state,
                    rounds=rounds,
                    max_rounds=self._max_rounds,
                    response=response,
                )
            else:
                for call in pending:
                    entry = await self._handle_tool_call(call, adapter, delta_index)
                    if entry is not None:
                        logs.append(entry)
                pending = []
                state = next_state(state, rounds=rounds, max_rounds=self._max_rounds)

        if state is DecisionState.ABORTED_AT_CAP:
            logger.info(
                "decision_round_cap_reached",
                extra={"rounds": rounds, "operations": len(logs)},
            )

        return DecisionResult(logs=logs, state=state, rounds=rounds)

    async def _handle_tool_call(
        self, call: ToolCallRequest, adapter: ChatAdapter, delta_index: int
    ) -> MemoryLogEntry | None:
        try:
            entry = await self._execute(call, delta_index)
        except MemoryToolError as e:
            message = str(e)
            adapter.push_tool_result(call.id, f"Error: {message}", True)
            logger.warning(
                "memory_tool_failed",
                extra={
                    "gen_ai.tool.name": call.name,
                    "error.type": type(e).__name__,
                    "error.message": message,
                },
            )
            return None

        adapter.push_tool_result(
            call.id, f"Success: {entry.action.value} memory {entry.memory_id}", False
        )
        return entry

    async def _execute(self, call: ToolCallRequest, delta_index: int) -> MemoryLogEntry:
        if call.name == STORE_MEMORY:
            store = parse_store_args(call.args)
            memory_id = str(
                await self._run_op(
                    self._ops.store(store.text, store.category, store.importance)
                )
            )
            logger.info(
                "memory_stored",
                extra={"memory.id": memory_id[:8], "memory.text": store.text[:60]},
            )
            return self._log(delta_index, MemoryAction.STORE, memory_id, store.text)

        if call.name == FORGET_MEMORY:
            forget = parse_forget_args(call.args)
            await self._run_op(self._ops.forget(forget.memory_id))
            logger.info("memory_forgotten", extra={"memory.id": forget.memory_id[:8]})
            return self._log(delta_index, MemoryAction.FORGET, forget.memory_id, "")

        if call.name == UPDATE_MEMORY:
            update = parse_update_args(call.args)
            new_id = str(
                await self._run_op(
                    self._ops.update(
                        update.memory_id, update.text, update.category, update.importance
                    )
                )
            )
            logger.info(
                "memory_updated",
                extra={"memory.id": update.memory_id[:8], "memory.new_id": new_id[:8]},
            )
            return self._log(delta_index, MemoryAction.UPDATE, new_id, update.text)

        raise UnknownToolError(call.name)

    async def _run_op(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except Exception as e:
            raise OperationError(str(e) or type(e).__name__) from e

    def _log(
        self, delta_index: int, action: MemoryAction, memory_id: str, text: str
    ) -> MemoryLogEntry:
        return MemoryLogEntry(
            delta_index=delta_index,
            action=action,
            memory_id=memory_id,
            text=text,
            timestamp=self._clock(),
        )
