"""Header set for requests forwarded to the upstream messages endpoint."""

from __future__ import annotations

from typing import Dict, Iterable, Optional


def merge_beta_flags(required: Iterable[str], incoming: Optional[str]) -> str:
    """Required flags first, then caller flags, duplicates dropped."""
    incoming_flags = [flag.strip() for flag in (incoming or "").split(",")]
    merged = dict.fromkeys(
        flag for flag in [*required, *incoming_flags] if flag
    )
    return ",".join(merged)


def build_upstream_headers(
    access_token: str,
    client_version: str,
    incoming_beta: Optional[str] = None,
    *,
    api_version: str,
    required_betas: Iterable[str],
) -> Dict[str, str]:
    # No x-api-key: the provider rejects it next to OAuth bearer auth.
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
        "anthropic-version": api_version,
        "anthropic-beta": merge_beta_flags(required_betas, incoming_beta),
        "User-Agent": f"claude-cli/{client_version} (external, cli)",
    }


__all__ = ["build_upstream_headers", "merge_beta_flags"]
