"""Chat adapter data structures shared by every backend."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Message role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class ToolDefinition:
    """Backend-neutral tool declaration (JSON Schema parameters)."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class ToolCallRequest:
    """A single operation requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class AdapterResponse:
    """Parsed output of one completion round.

    ``done`` is set when the round produced no tool calls or the backend
    signalled that its turn is finished.
    """

    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    done: bool = True
    text: str = ""
