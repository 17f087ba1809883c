"""Centralized logging configuration for recollect.

Library code only calls ``logging.getLogger(__name__)`` and logs structured
event names with ``extra={...}`` fields. Hosts embedding recollect keep their
own logging setup; the CLI calls configure_logging() once at startup.

Logging Levels:
- DEBUG: Backend round trips, journal cache hits
- INFO: Executed memory operations, capture summaries
- WARNING: Tool failures fed back to the model, corrupt journals, retries
  exhausted, failed capture attempts
- ERROR: Failures that affect operation
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any

# Secrets that can leak through transcripts or SDK error messages
DEFAULT_REDACT_PATTERNS: list[str] = [
    r"\b(sk-[A-Za-z0-9_-]{20,})\b",
    r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD|PASSWD)\s*[=:]\s*([^\s\"']{8,})",
    r"\bBearer\s+([A-Za-z0-9._\-+=]{20,})\b",
]

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "component"}


@dataclass
class SecretRedactor:
    """Masks API keys and tokens in log output, keeping the first and last
    four characters so the key can still be identified."""

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.patterns:
            self.patterns = [
                re.compile(p, re.IGNORECASE) for p in DEFAULT_REDACT_PATTERNS
            ]

    def redact(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        result = text
        for pattern in self.patterns:
            result = pattern.sub(self._mask_match, result)
        return result

    def _mask_match(self, match: re.Match[str]) -> str:
        full = match.group(0)
        token = match.group(1) if match.lastindex else full

        if "..." in token:
            return full

        if len(token) < 12:
            return full.replace(token, "***") if token != full else "***"

        masked = f"{token[:4]}...{token[-4:]}"
        return full.replace(token, masked) if token != full else masked


_redactor = SecretRedactor()


def _component(logger_name: str) -> str:
    parts = logger_name.split(".")
    if len(parts) >= 2 and parts[0] == "recollect":
        return parts[1]
    return parts[0]


def record_extra(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields passed to a logging call via ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class ComponentFormatter(logging.Formatter):
    """Formatter that shortens ``recollect.memory.journal`` to ``memory`` and
    appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        line = super().format(record)
        if extra := record_extra(record):
            pairs = " ".join(f"{key}={value}" for key, value in extra.items())
            line = f"{line} {pairs}"
        return _redactor.redact(line)


# Third-party loggers that are too noisy at INFO level
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "anthropic",
    "openai",
]


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
) -> None:
    """Configure logging for recollect.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses RECOLLECT_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful console output.
    """
    if level is None:
        level = os.environ.get("RECOLLECT_LOG_LEVEL", "INFO").upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = "INFO"

    log_level = getattr(logging, level)

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            ComponentFormatter(
                "%(asctime)s | %(levelname)-8s | %(component)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    logging.basicConfig(
        level=log_level,
        handlers=[console_handler],
        force=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
