"""
Reverse tool-name namespacing in upstream responses.

Works on text rather than parsed JSON because a streamed body is a sequence
of event fragments, not one JSON document. A ``"name"`` field split across
two chunks is not rewritten.
"""

from __future__ import annotations

import codecs
import re
from functools import lru_cache
from typing import AsyncIterator


@lru_cache(maxsize=8)
def _name_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(r'"name"\s*:\s*"' + re.escape(prefix) + r'([^"]+)"')


def strip_tool_prefix(text: str, prefix: str) -> str:
    """Turn ``"name": "<prefix>tool"`` back into ``"name": "tool"``."""
    return _name_pattern(prefix).sub(r'"name": "\1"', text)


async def strip_tool_prefix_stream(
    chunks: AsyncIterator[bytes], prefix: str
) -> AsyncIterator[bytes]:
    """Yield one rewritten chunk per upstream chunk.

    Decoding is incremental so a UTF-8 sequence split across chunks is held
    back until its remaining bytes arrive. Bytes of a sequence the upstream never
    completes are dropped. Single pass; not restartable.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        text = decoder.decode(chunk)
        yield strip_tool_prefix(text, prefix).encode("utf-8")


__all__ = ["strip_tool_prefix", "strip_tool_prefix_stream"]
