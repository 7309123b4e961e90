"""Static model listing served for client compatibility."""

from __future__ import annotations

from typing import Any, Dict

MODEL_IDS: tuple[str, ...] = (
    "claude-opus-4-6",
    "claude-sonnet-4-6",
    "claude-haiku-4-5",
    "claude-opus-4-20250514",
    "claude-sonnet-4-20250514",
)


def list_models() -> Dict[str, Any]:
    return {
        "object": "list",
        "data": [
            {"id": model_id, "object": "model", "owned_by": "anthropic"}
            for model_id in MODEL_IDS
        ],
    }


__all__ = ["MODEL_IDS", "list_models"]
