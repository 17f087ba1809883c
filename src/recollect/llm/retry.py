"""Exponential-backoff retries for chat backend requests."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504, 529})

RETRYABLE_PATTERN = re.compile(
    r"overloaded|rate.?limit|too many requests|"
    r"service.?unavailable|server error|internal error|"
    r"connection.?error|timed? ?out",
    re.IGNORECASE,
)

# Matched against exception class names, e.g. openai.APITimeoutError
RETRYABLE_TYPE_HINTS = ("timeout", "connection", "overloaded", "ratelimit")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    enabled: bool = True
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 20000

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds before retry number ``attempt + 1``."""
        return min(self.base_delay_ms * (2**attempt), self.max_delay_ms) / 1000


def is_retryable_error(error: Exception) -> bool:
    """Check if a backend error is transient.

    Status codes are read from the ``status_code`` attribute both SDKs set on
    their API errors; otherwise the exception type and message are checked.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code in RETRYABLE_STATUS_CODES

    error_type = type(error).__name__.lower()
    if any(hint in error_type for hint in RETRYABLE_TYPE_HINTS):
        return True

    return bool(RETRYABLE_PATTERN.search(str(error)))


async def with_retry(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "chat request",
) -> T:
    """Execute an async function, retrying transient failures.

    Raises:
        The last exception once retries are exhausted, or the first
        non-retryable exception.
    """
    config = config or RetryConfig()

    if not config.enabled:
        return await func()

    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt >= config.max_retries:
                logger.warning(
                    "retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": attempt + 1,
                        "error.message": str(e),
                        "error.type": type(e).__name__,
                    },
                )
                raise

            delay_s = config.delay_for(attempt)
            logger.info(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_attempts": config.max_retries + 1,
                    "retry_delay_s": round(delay_s, 1),
                    "error.type": type(e).__name__,
                },
            )
            await asyncio.sleep(delay_s)
            attempt += 1
