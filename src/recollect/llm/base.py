"""Abstract chat adapter interface."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

from recollect.llm.errors import TransportError
from recollect.llm.retry import RetryConfig, with_retry
from recollect.llm.types import AdapterResponse, ToolDefinition

T = TypeVar("T")


class ChatAdapter(ABC):
    """Owns one tool-calling transcript against a specific backend.

    An adapter is created per evaluation with the system and user prompts
    already in its transcript. Each ``complete()`` sends the transcript plus
    the tool declarations and appends the model's reply; each
    ``push_tool_result()`` appends a result for one of the reply's tool calls.
    """

    def __init__(
        self,
        *,
        model: str,
        tools: list[ToolDefinition],
        max_tokens: int = 4096,
        retry: RetryConfig | None = None,
    ) -> None:
        self.model = model
        self.tools = tools
        self.max_tokens = max_tokens
        self._retry = retry or RetryConfig()

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier (e.g., 'openai-completions')."""
        ...

    @property
    @abstractmethod
    def transcript(self) -> list[dict]:
        """The wire-format messages sent so far (system prompt excluded for
        backends that carry it out of band)."""
        ...

    @abstractmethod
    async def complete(self) -> AdapterResponse:
        """Run one completion round and return the parsed tool calls.

        Raises:
            TransportError: If the backend fails or replies with something
                that cannot be parsed.
        """
        ...

    @abstractmethod
    def push_tool_result(self, tool_call_id: str, content: str, is_error: bool) -> None:
        """Append a tool result for ``tool_call_id`` to the transcript."""
        ...

    async def _request(self, func: Callable[[], Awaitable[T]]) -> T:
        """Call the backend with retries, mapping final failures to TransportError."""
        try:
            return await with_retry(
                func,
                config=self._retry,
                operation_name=f"{self.name} {self.model}",
            )
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(
                f"{self.name} request failed: {e}", backend=self.name
            ) from e
