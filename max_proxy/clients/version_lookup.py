"""Best-effort discovery of the current Claude Code CLI version."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

import httpx

from max_proxy.core.config import UpstreamSettings

logger = logging.getLogger(__name__)


class ClientVersionLookup:
    """Read ``dist-tags.latest`` from the package registry, or fall back.

    A failed lookup is never an error for the caller: the configured fallback
    version is returned instead.
    """

    def __init__(
        self,
        settings: UpstreamSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._clock = clock
        self._cached: Optional[Tuple[str, float]] = None

    async def get_version(self) -> str:
        ttl = self._settings.version_cache_ttl
        if ttl > 0 and self._cached is not None:
            version, fetched_at = self._cached
            if self._clock() - fetched_at < ttl:
                return version

        version = await self._fetch()
        if ttl > 0:
            self._cached = (version, self._clock())
        return version

    async def _fetch(self) -> str:
        fallback = self._settings.client_version
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.version_lookup_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self._settings.version_url,
                    headers={"Accept": "application/json"},
                )
            if not response.is_success:
                logger.warning(
                    "Version lookup returned %s; using fallback %s",
                    response.status_code,
                    fallback,
                )
                return fallback
            latest = (response.json().get("dist-tags") or {}).get("latest")
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Failed to fetch Claude Code version: %s", exc)
            return fallback

        if not latest or not isinstance(latest, str):
            return fallback
        return latest


__all__ = ["ClientVersionLookup"]
