"""Session journal and LLM-driven memory decisions."""

from recollect.memory.capture import (
    CaptureResult,
    MemoryCapture,
    create_memory_capture,
    extract_clean_messages,
)
from recollect.memory.decision import (
    MAX_ROUNDS,
    SYSTEM_PROMPT,
    DecisionMaker,
    DecisionResult,
    DecisionState,
    build_user_prompt,
)
from recollect.memory.errors import (
    MemoryToolError,
    OperationError,
    UnknownToolError,
    ValidationError,
)
from recollect.memory.journal import AppendResult, SessionJournal, sanitize_session_key
from recollect.memory.ops import MemoryOps
from recollect.memory.tools import MEMORY_TOOLS
from recollect.memory.types import (
    CleanMessage,
    JournalData,
    MemoryAction,
    MemoryCategory,
    MemoryLogEntry,
    MessageRole,
)

__all__ = [
    # Journal
    "AppendResult",
    "SessionJournal",
    "sanitize_session_key",
    # Decisions
    "MAX_ROUNDS",
    "MEMORY_TOOLS",
    "SYSTEM_PROMPT",
    "DecisionMaker",
    "DecisionResult",
    "DecisionState",
    "MemoryOps",
    "build_user_prompt",
    # Capture
    "CaptureResult",
    "MemoryCapture",
    "create_memory_capture",
    "extract_clean_messages",
    # Errors
    "MemoryToolError",
    "OperationError",
    "UnknownToolError",
    "ValidationError",
    # Types
    "CleanMessage",
    "JournalData",
    "MemoryAction",
    "MemoryCategory",
    "MemoryLogEntry",
    "MessageRole",
]
