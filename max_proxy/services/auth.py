"""Shared-secret check for inbound requests."""

from __future__ import annotations

import hmac
from typing import Mapping


def _matches(candidate: str | None, secret: str) -> bool:
    if not candidate or not secret:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def is_authorized(headers: Mapping[str, str], secret: str) -> bool:
    """Accept ``Authorization: Bearer <secret>`` or ``x-api-key: <secret>``.

    ``headers`` must be case-insensitive (Starlette or httpx headers). The
    secret gates this gateway only and has nothing to do with the upstream
    OAuth token.
    """
    authorization = headers.get("authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme == "Bearer" and _matches(token, secret):
            return True

    return _matches(headers.get("x-api-key"), secret)


__all__ = ["is_authorized"]
