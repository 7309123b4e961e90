"""
Logging utilities for the gateway.

Provides a consistent logging format and makes sure credential material never
reaches the log stream, whichever module emitted the record.
"""

import logging
import re
import sys
from typing import Iterable

_MASK = "***"
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s,;'\"]+")


class SecretRedactingFilter(logging.Filter):
    """Mask configured secrets and bearer tokens in formatted messages."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, message: str) -> str:
        for secret in self._secrets:
            message = message.replace(secret, _MASK)
        return _BEARER_PATTERN.sub(rf"\g<1>{_MASK}", message)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO", *, secrets: Iterable[str] = ()) -> None:
    """Configure root logging and attach the redaction filter to its handlers."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    redactor = SecretRedactingFilter(secrets)
    for handler in logging.getLogger().handlers:
        for existing in list(handler.filters):
            if isinstance(existing, SecretRedactingFilter):
                handler.removeFilter(existing)
        handler.addFilter(redactor)


__all__ = ["SecretRedactingFilter", "configure_logging"]
