"""Automatic capture at the end of a conversation turn.

Glue between the host's conversation-end event, the session journal and the
decision maker. Capture is best effort: every failure is logged and
swallowed so the host conversation is never interrupted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from recollect.memory.decision import DecisionMaker, DecisionState
from recollect.memory.journal import SessionJournal
from recollect.memory.types import CleanMessage, MemoryLogEntry, MessageRole

if TYPE_CHECKING:
    from recollect.config.models import RecollectConfig
    from recollect.memory.ops import MemoryOps

logger = logging.getLogger(__name__)

# Injected by recall; never feed our own memories back into capture.
RECALL_MARKER = "<relevant-memories>"

_ROLES = {role.value: role for role in MessageRole}


def _clean_text(text: Any) -> str | None:
    if not isinstance(text, str):
        return None
    text = text.strip()
    if not text or RECALL_MARKER in text:
        return None
    return text


def extract_clean_messages(messages: Sequence[Any]) -> list[CleanMessage]:
    """Reduce host messages to plain user/assistant text.

    Content may be a string or a list of blocks; only ``text`` blocks are
    kept and each becomes its own message. Other roles, non-text blocks,
    empty text and recall injections are dropped.
    """
    result: list[CleanMessage] = []
    for message in messages:
        if not isinstance(message, dict):
            continue
        role_name = message.get("role")
        role = _ROLES.get(role_name) if isinstance(role_name, str) else None
        if role is None:
            continue

        content = message.get("content")
        if isinstance(content, str):
            if text := _clean_text(content):
                result.append(CleanMessage(role=role, text=text))
            continue

        if isinstance(content, list):
            for block in content:
                if not isinstance(block, dict) or block.get("type") != "text":
                    continue
                if text := _clean_text(block.get("text")):
                    result.append(CleanMessage(role=role, text=text))
    return result


@dataclass(slots=True)
class CaptureResult:
    """Outcome of one successful capture pass."""

    session_key: str
    logs: list[MemoryLogEntry]
    processed_index: int
    delta_size: int
    state: DecisionState


class MemoryCapture:
    """Runs extract -> append -> evaluate -> commit for a session."""

    def __init__(self, journal: SessionJournal, decision_maker: DecisionMaker) -> None:
        self.journal = journal
        self.decision_maker = decision_maker

    async def on_conversation_end(
        self,
        session_key: str | None,
        messages: Sequence[Any] | None,
        *,
        success: bool = True,
    ) -> CaptureResult | None:
        """Capture memories from a finished turn.

        Returns None when there was nothing to do or the attempt failed.
        Never raises.
        """
        if not success or not messages:
            logger.debug("capture_skipped", extra={"reason": "no_messages"})
            return None

        if not session_key:
            logger.warning("capture_skipped", extra={"reason": "no_session_key"})
            return None

        try:
            return await self._capture(session_key, messages)
        except Exception as e:
            logger.warning(
                "capture_failed",
                extra={
                    "session.key": session_key,
                    "error.type": type(e).__name__,
                    "error.message": str(e),
                },
                exc_info=True,
            )
            return None

    async def _capture(
        self, session_key: str, messages: Sequence[Any]
    ) -> CaptureResult | None:
        clean = extract_clean_messages(messages)
        logger.debug(
            "capture_extracted",
            extra={"messages.raw": len(messages), "messages.clean": len(clean)},
        )
        if not clean:
            return None

        appended = await self.journal.append_messages(session_key, clean)
        if not appended.delta:
            logger.debug("capture_skipped", extra={"reason": "empty_delta"})
            return None

        result = await self.decision_maker.evaluate(appended.journal, appended.delta)

        processed_index = len(appended.journal.clean_context)
        await self.journal.commit_decisions(session_key, result.logs, processed_index)

        logger.info(
            "capture_completed",
            extra={
                "session.key": session_key,
                "delta.size": len(appended.delta),
                "operations": len(result.logs),
                "rounds": result.rounds,
                "state": result.state.value,
            },
        )
        return CaptureResult(
            session_key=session_key,
            logs=result.logs,
            processed_index=processed_index,
            delta_size=len(appended.delta),
            state=result.state,
        )


def create_memory_capture(
    config: RecollectConfig,
    ops: MemoryOps,
    *,
    client: Any = None,
) -> MemoryCapture | None:
    """Wire journal and decision maker from configuration.

    Returns None when auto-capture is disabled or no chat backend is
    configured.
    """
    if not config.auto_capture:
        logger.info("capture_disabled", extra={"config.reason": "auto_capture_off"})
        return None

    if config.chat is None:
        logger.warning(
            "capture_disabled",
            extra={"config.reason": "no_chat_config"},
        )
        return None

    if client is None and config.chat.resolve_api_key() is None:
        logger.warning(
            "capture_disabled",
            extra={"config.reason": "no_api_key", "chat.api": config.chat.api},
        )
        return None

    journal = SessionJournal(config.db_path)
    decision_maker = DecisionMaker.from_config(config.chat, ops, client=client)
    logger.info(
        "capture_enabled",
        extra={
            "chat.api": config.chat.api,
            "chat.model": config.chat.model,
            "db_path": str(config.db_path),
        },
    )
    return MemoryCapture(journal, decision_maker)
