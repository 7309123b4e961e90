"""Forwarding client for the upstream messages endpoint."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict

import httpx

from max_proxy.core.config import UpstreamSettings

logger = logging.getLogger(__name__)


class UpstreamTransportError(Exception):
    """Raised when the upstream endpoint cannot be reached at all."""


class UpstreamResponse:
    """An open upstream response; the caller must ``aclose`` it."""

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self._response = response
        self._client = client

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def aread(self) -> bytes:
        return await self._response.aread()

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class UpstreamClient:
    """POST transformed bodies to the provider and hand back the open response.

    No timeout and no retries: the hosting platform bounds request duration
    and the calling client owns its retry policy.
    """

    def __init__(
        self,
        settings: UpstreamSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def send(self, body: Dict[str, Any], headers: Dict[str, str]) -> UpstreamResponse:
        client = httpx.AsyncClient(timeout=None, transport=self._transport)
        request = client.build_request(
            "POST",
            self._settings.api_url,
            params={"beta": "true"},
            json=body,
            headers=headers,
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            raise UpstreamTransportError(f"Upstream request failed: {exc}") from exc

        logger.info(
            "Forwarded request to %s (status=%s, stream=%s)",
            self._settings.api_url,
            response.status_code,
            bool(body.get("stream")),
        )
        return UpstreamResponse(response, client)


__all__ = ["UpstreamClient", "UpstreamResponse", "UpstreamTransportError"]
