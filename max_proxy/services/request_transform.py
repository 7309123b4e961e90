"""
Rewrites applied to a Messages API body before it is forwarded upstream.

The provider only honours subscription OAuth tokens for requests that look
like they come from Claude Code, so every body gets the Claude Code identity
preamble, has the blocked client name scrubbed from its system prompt, and has
its tool names namespaced away from provider-reserved names.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

IDENTITY_PROMPT = "You are Claude Code, Anthropic's official CLI for Claude."
IDENTITY_MARKER = "You are Claude Code"

_BLOCKED_PRODUCT = re.compile("OpenCode")
_BLOCKED_BRAND = re.compile("opencode", re.IGNORECASE)


def _normalize_system(system: Any) -> Any:
    if not system:
        return []
    if isinstance(system, str):
        return [{"type": "text", "text": system}]
    if isinstance(system, list):
        return list(system)
    return system


def _has_identity(blocks: List[Any]) -> bool:
    for block in blocks:
        text = block.get("text") if isinstance(block, dict) else None
        if isinstance(text, str) and text.startswith(IDENTITY_MARKER):
            return True
    return False


def inject_identity(body: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure ``system`` is a block list opening with the identity preamble."""
    system = _normalize_system(body.get("system"))
    if isinstance(system, list) and not _has_identity(system):
        system.insert(0, {"type": "text", "text": IDENTITY_PROMPT})
    return {**body, "system": system}


def sanitize_system(body: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the blocked client name inside system text blocks."""
    system = body.get("system")
    if not isinstance(system, list):
        return body

    sanitized = []
    for block in system:
        if (
            isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
            and block["text"]
        ):
            text = _BLOCKED_PRODUCT.sub("Claude Code", block["text"])
            text = _BLOCKED_BRAND.sub("Claude", text)
            block = {**block, "text": text}
        sanitized.append(block)
    return {**body, "system": sanitized}


def _prefixed_message(message: Any, prefix: str) -> Any:
    if not isinstance(message, dict) or not isinstance(message.get("content"), list):
        return message
    content = []
    for block in message["content"]:
        if isinstance(block, dict) and block.get("type") == "tool_use" and block.get("name"):
            block = {**block, "name": f"{prefix}{block['name']}"}
        content.append(block)
    return {**message, "content": content}


def namespace_tools(body: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    """Prefix tool definitions and ``tool_use`` blocks. Not idempotent."""
    result = dict(body)
    tools = body.get("tools")
    if isinstance(tools, list):
        result["tools"] = [
            {**tool, "name": f"{prefix}{tool['name']}"}
            if isinstance(tool, dict) and tool.get("name")
            else tool
            for tool in tools
        ]

    messages = body.get("messages")
    if isinstance(messages, list):
        result["messages"] = [_prefixed_message(message, prefix) for message in messages]
    return result


def transform_request_body(body: Dict[str, Any], *, tool_prefix: str) -> Dict[str, Any]:
    """Apply identity injection, sanitization and tool namespacing, in that order.

    The input is left untouched. Call once per request: the identity step is
    idempotent but tool namespacing is not.
    """
    transformed = inject_identity(body)
    transformed = sanitize_system(transformed)
    return namespace_tools(transformed, tool_prefix)


__all__ = [
    "IDENTITY_MARKER",
    "IDENTITY_PROMPT",
    "inject_identity",
    "namespace_tools",
    "sanitize_system",
    "transform_request_body",
]
