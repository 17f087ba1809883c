"""Interface to the long-term memory backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from recollect.memory.types import MemoryCategory


@runtime_checkable
class MemoryOps(Protocol):
    """Low-level memory operations supplied by the host.

    Implementations raise on failure; the message is shown to the model.
    """

    async def store(
        self, text: str, category: MemoryCategory, importance: float
    ) -> str:
        """Embed and store new text. Returns the new memory id.

        Raises on near-duplicate content.
        """
        ...

    async def forget(self, memory_id: str) -> bool:
        """Delete a memory by id. Raises if the id is invalid."""
        ...

    async def update(
        self,
        memory_id: str,
        text: str,
        category: MemoryCategory,
        importance: float,
    ) -> str:
        """Delete ``memory_id`` and store ``text`` in its place.

        Returns the replacement's memory id.
        """
        ...
