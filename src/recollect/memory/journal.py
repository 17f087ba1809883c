"""Per-session conversation journal with atomic persistence.

Each session keeps its clean user/assistant context, how far into that
context the decision model has already looked, and the memory operations it
performed. The journal is the single source of truth for incremental
evaluation: callers get back only the delta that still needs a decision.

Files live at ``<db_path>/sessions/<sanitized key>.json``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import tempfile
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import aiofiles

from recollect.memory.types import CleanMessage, JournalData, MemoryLogEntry

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_session_key(session_key: str) -> str:
    """Map a session key to a safe file stem."""
    return _UNSAFE_KEY_CHARS.sub("_", session_key)


@dataclass(slots=True)
class AppendResult:
    """Journal snapshot after an append, plus the unprocessed delta."""

    journal: JournalData
    delta: list[CleanMessage]


class SessionJournal:
    """Durable per-session journal.

    Operations on one session key run strictly one at a time, in the order
    they were issued (an ``asyncio.Lock`` per key; its waiters are woken
    first-in first-out). A failed operation releases the lock, so later
    operations on the same key still run. Distinct keys never contend.

    One instance is meant to live for the whole process per memory root.
    Its lock map and cache are instance state, and the per-key locks bind to
    the running event loop: all calls must come from a single loop. Hosts that
    run several threads must hand journal work to that loop (for example with
    ``asyncio.run_coroutine_threadsafe``).
    """

    def __init__(self, db_path: Path | str) -> None:
        self._sessions_dir = Path(db_path).expanduser() / "sessions"
        self._sessions_dir.mkdir(parents=True, exist_ok=True)
        self._cache: dict[str, JournalData] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def sessions_dir(self) -> Path:
        return self._sessions_dir

    def journal_path(self, session_key: str) -> Path:
        return self._sessions_dir / f"{sanitize_session_key(session_key)}.json"

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def append_messages(
        self, session_key: str, messages: Iterable[CleanMessage]
    ) -> AppendResult:
        """Append messages not seen before and return the unprocessed delta.

        Messages whose exact (role, text) is already in the context, or
        repeated within ``messages``, are dropped. The file is only rewritten
        when something new was appended.
        """
        key = sanitize_session_key(session_key)
        async with self._lock_for(key):
            journal = await self._load(key)

            seen = {m.identity for m in journal.clean_context}
            fresh: list[CleanMessage] = []
            for message in messages:
                if message.identity in seen:
                    continue
                seen.add(message.identity)
                fresh.append(message)

            if fresh:
                updated = journal.copy()
                updated.clean_context.extend(fresh)
                await self._save(key, updated)
                journal = updated

            logger.debug(
                "journal_appended",
                extra={
                    "session.key": key,
                    "messages.new": len(fresh),
                    "context.size": len(journal.clean_context),
                    "processed_index": journal.processed_index,
                },
            )

            snapshot = journal.copy()
            return AppendResult(journal=snapshot, delta=snapshot.delta)

    async def commit_decisions(
        self,
        session_key: str,
        logs: Sequence[MemoryLogEntry],
        new_processed_index: int,
    ) -> None:
        """Record executed operations and advance the processed index.

        The index is clamped to ``[processed_index, len(clean_context)]``:
        it never moves past the context and a stale commit never moves it
        backwards.
        """
        key = sanitize_session_key(session_key)
        async with self._lock_for(key):
            journal = await self._load(key)

            target = max(
                journal.processed_index,
                min(new_processed_index, len(journal.clean_context)),
            )
            if target != new_processed_index:
                logger.warning(
                    "journal_index_clamped",
                    extra={
                        "session.key": key,
                        "requested": new_processed_index,
                        "applied": target,
                    },
                )

            updated = journal.copy()
            updated.memory_logs.extend(logs)
            updated.processed_index = target
            await self._save(key, updated)

            logger.debug(
                "journal_committed",
                extra={
                    "session.key": key,
                    "logs.new": len(logs),
                    "processed_index": target,
                },
            )

    async def get(self, session_key: str) -> JournalData:
        """Return a snapshot of the session's journal (empty if unknown)."""
        key = sanitize_session_key(session_key)
        async with self._lock_for(key):
            return (await self._load(key)).copy()

    def list_sessions(self) -> list[str]:
        """Sanitized keys of every persisted journal, sorted."""
        return sorted(
            path.stem
            for path in self._sessions_dir.glob("*.json")
            if "." not in path.stem
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def _load(self, key: str) -> JournalData:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self._sessions_dir / f"{key}.json"
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            journal = JournalData()
        except OSError as e:
            logger.warning(
                "journal_unreadable",
                extra={"session.key": key, "error.message": str(e)},
            )
            journal = JournalData()
        else:
            try:
                journal = JournalData.from_dict(json.loads(raw))
            except (ValueError, KeyError, TypeError) as e:
                quarantined = self._quarantine(path)
                logger.warning(
                    "journal_corrupt",
                    extra={
                        "session.key": key,
                        "error.message": str(e),
                        "quarantined_to": str(quarantined) if quarantined else None,
                    },
                )
                journal = JournalData()

        self._cache[key] = journal
        return journal

    def _quarantine(self, path: Path) -> Path | None:
        """Move an unparsable journal aside so a fresh one can't overwrite it."""
        target = path.with_name(f"{path.stem}.corrupt-{int(time.time() * 1000)}.json")
        try:
            os.replace(path, target)
        except OSError:
            logger.warning("journal_quarantine_failed", exc_info=True)
            return None
        return target

    async def _save(self, key: str, journal: JournalData) -> None:
        """Write to a temp file in the same directory, fsync, then rename.

        A crash at any point leaves either the old or the new file, never a
        partial one. The cache only changes once the rename succeeded.
        """
        path = self._sessions_dir / f"{key}.json"
        self._sessions_dir.mkdir(parents=True, exist_ok=True)

        temp_fd, temp_path = tempfile.mkstemp(
            dir=self._sessions_dir,
            prefix=f".{key}_",
            suffix=".tmp",
        )
        try:
            async with aiofiles.open(temp_fd, "w", encoding="utf-8") as f:
                await f.write(json.dumps(journal.to_dict(), ensure_ascii=False, indent=2))
                await f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, path)
        except BaseException:
            try:
                Path(temp_path).unlink()
            except OSError:
                pass
            raise

        self._cache[key] = journal
