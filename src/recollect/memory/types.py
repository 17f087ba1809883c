"""Journal data types.

Serialized field names are camelCase; that is the on-disk journal format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MemoryCategory(str, Enum):
    """Category the model assigns to a stored memory."""

    PREFERENCE = "preference"
    FACT = "fact"
    DECISION = "decision"
    ENTITY = "entity"
    OTHER = "other"


class MemoryAction(str, Enum):
    STORE = "store"
    FORGET = "forget"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class CleanMessage:
    """A plain-text user or assistant turn."""

    role: MessageRole
    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, MessageRole):
            object.__setattr__(self, "role", MessageRole(self.role))

    @property
    def identity(self) -> tuple[str, str]:
        """Dedup key: exact (role, text)."""
        return (self.role.value, self.text)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CleanMessage:
        text = d["text"]
        if not isinstance(text, str):
            raise TypeError("message text must be a string")
        return cls(role=MessageRole(d["role"]), text=text)


@dataclass(slots=True)
class MemoryLogEntry:
    """One memory operation that was executed successfully.

    ``delta_index`` is the length of the clean context when the decision was
    made, so an audit can tell exactly which messages the model had seen.
    ``timestamp`` is epoch milliseconds.
    """

    delta_index: int
    action: MemoryAction
    memory_id: str
    text: str
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "deltaIndex": self.delta_index,
            "action": self.action.value,
            "memoryId": self.memory_id,
            "text": self.text,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MemoryLogEntry:
        return cls(
            delta_index=int(d["deltaIndex"]),
            action=MemoryAction(d["action"]),
            memory_id=str(d["memoryId"]),
            text=str(d.get("text", "")),
            timestamp=int(d.get("timestamp", 0)),
        )


@dataclass(slots=True)
class JournalData:
    """Per-session journal state.

    Invariant: ``0 <= processed_index <= len(clean_context)``.
    """

    processed_index: int = 0
    clean_context: list[CleanMessage] = field(default_factory=list)
    memory_logs: list[MemoryLogEntry] = field(default_factory=list)

    @property
    def delta(self) -> list[CleanMessage]:
        """Messages not yet evaluated."""
        return self.clean_context[self.processed_index :]

    def copy(self) -> JournalData:
        # Messages are frozen; log entries are never mutated after creation.
        return JournalData(
            processed_index=self.processed_index,
            clean_context=list(self.clean_context),
            memory_logs=list(self.memory_logs),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "processedIndex": self.processed_index,
            "cleanContext": [m.to_dict() for m in self.clean_context],
            "memoryLogs": [entry.to_dict() for entry in self.memory_logs],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> JournalData:
        """Deserialize a persisted record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        if not isinstance(d, dict):
            raise TypeError("journal record must be a JSON object")
        clean_context = [CleanMessage.from_dict(m) for m in d.get("cleanContext", [])]
        memory_logs = [MemoryLogEntry.from_dict(e) for e in d.get("memoryLogs", [])]
        processed_index = int(d.get("processedIndex", 0))
        return cls(
            processed_index=max(0, min(processed_index, len(clean_context))),
            clean_context=clean_context,
            memory_logs=memory_logs,
        )
