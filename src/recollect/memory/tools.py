"""Tool declarations exposed to the decision model, and argument coercion."""

from dataclasses import dataclass
from typing import Any

from recollect.llm.types import ToolDefinition
from recollect.memory.errors import ValidationError
from recollect.memory.types import MemoryCategory

STORE_MEMORY = "store_memory"
FORGET_MEMORY = "forget_memory"
UPDATE_MEMORY = "update_memory"

DEFAULT_IMPORTANCE = 0.7

_CATEGORY_SCHEMA = {
    "type": "string",
    "enum": [c.value for c in MemoryCategory],
    "description": "Memory category",
}

MEMORY_TOOLS: list[ToolDefinition] = [
    ToolDefinition(
        name=STORE_MEMORY,
        description="Store a new piece of information in long-term memory.",
        input_schema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "The original conversation text to store",
                },
                "category": _CATEGORY_SCHEMA,
                "importance": {
                    "type": "number",
                    "description": "Importance score from 0 to 1",
                },
            },
            "required": ["text", "category", "importance"],
        },
    ),
    ToolDefinition(
        name=FORGET_MEMORY,
        description=(
            "Delete a memory by its ID. Only use when the user explicitly "
            "asks to forget."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "memoryId": {
                    "type": "string",
                    "description": "UUID of the memory to delete",
                },
            },
            "required": ["memoryId"],
        },
    ),
    ToolDefinition(
        name=UPDATE_MEMORY,
        description=(
            "Update an existing memory (replaces it with new text). Use when new "
            "information contradicts or refines a previously stored memory."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "memoryId": {
                    "type": "string",
                    "description": "UUID of the memory to update",
                },
                "text": {"type": "string", "description": "Updated memory text"},
                "category": _CATEGORY_SCHEMA,
                "importance": {
                    "type": "number",
                    "description": "Updated importance score 0-1",
                },
            },
            "required": ["memoryId", "text", "category", "importance"],
        },
    ),
]


@dataclass(frozen=True, slots=True)
class StoreArgs:
    text: str
    category: MemoryCategory
    importance: float


@dataclass(frozen=True, slots=True)
class ForgetArgs:
    memory_id: str


@dataclass(frozen=True, slots=True)
class UpdateArgs:
    memory_id: str
    text: str
    category: MemoryCategory
    importance: float


def _required_string(args: dict[str, Any], key: str, tool: str) -> str:
    value = args.get(key)
    if value is None:
        raise ValidationError(f"{key} is required for {tool}")
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a string for {tool}")
    text = str(value)
    if not text.strip():
        raise ValidationError(f"{key} is required for {tool}")
    return text


def _category(args: dict[str, Any]) -> MemoryCategory:
    raw = args.get("category")
    if isinstance(raw, str):
        try:
            return MemoryCategory(raw.strip().lower())
        except ValueError:
            pass
    return MemoryCategory.OTHER


def _importance(args: dict[str, Any], tool: str) -> float:
    raw = args.get("importance")
    if raw is None:
        return DEFAULT_IMPORTANCE
    if isinstance(raw, bool):
        raise ValidationError(f"importance must be a number for {tool}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"importance must be a number for {tool}") from None
    if value != value:  # NaN
        raise ValidationError(f"importance must be a number for {tool}")
    return min(1.0, max(0.0, value))


def parse_store_args(args: dict[str, Any]) -> StoreArgs:
    return StoreArgs(
        text=_required_string(args, "text", STORE_MEMORY),
        category=_category(args),
        importance=_importance(args, STORE_MEMORY),
    )


def parse_forget_args(args: dict[str, Any]) -> ForgetArgs:
    return ForgetArgs(memory_id=_required_string(args, "memoryId", FORGET_MEMORY))


def parse_update_args(args: dict[str, Any]) -> UpdateArgs:
    return UpdateArgs(
        memory_id=_required_string(args, "memoryId", UPDATE_MEMORY),
        text=_required_string(args, "text", UPDATE_MEMORY),
        category=_category(args),
        importance=_importance(args, UPDATE_MEMORY),
    )
