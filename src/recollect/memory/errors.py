"""Errors raised while executing a memory tool call.

All of them are reported back to the model as tool errors; none of them
abort an evaluation.
"""


class MemoryToolError(Exception):
    """Base class for tool-call failures fed back to the model."""


class ValidationError(MemoryToolError):
    """A required argument is missing, empty or of the wrong type."""


class UnknownToolError(MemoryToolError):
    """The model called a tool that was never declared."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class OperationError(MemoryToolError):
    """The memory backend rejected the operation (duplicate, invalid id...)."""
