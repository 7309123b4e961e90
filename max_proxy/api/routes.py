"""
FastAPI routes for the gateway.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, AsyncIterator

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from max_proxy.clients import UpstreamResponse
from max_proxy.clients.anthropic_oauth import CredentialRefreshError
from max_proxy.clients.upstream import UpstreamTransportError
from max_proxy.dependencies import (
    get_app_settings,
    get_token_service,
    get_upstream_client,
    get_version_lookup,
)
from max_proxy.services import (
    build_upstream_headers,
    is_authorized,
    list_models,
    strip_tool_prefix,
    strip_tool_prefix_stream,
    transform_request_body,
)

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "claude-max-proxy"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, Authorization, x-api-key, anthropic-version, anthropic-beta"
    ),
}


async def answer_preflight(request: Request, call_next):
    """HTTP middleware answering every OPTIONS request with the fixed CORS policy.

    Runs before routing so preflights for any path succeed while unknown
    paths still 404 for other methods.
    """
    if request.method == "OPTIONS":
        return Response(status_code=HTTPStatus.NO_CONTENT, headers=CORS_HEADERS)
    return await call_next(request)


@router.get("/", status_code=HTTPStatus.OK)
@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    token_service: Annotated[Any, Depends(get_token_service)],
) -> dict:
    """Report liveness and the cached token's remaining validity."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "tokenStatus": await token_service.describe_status(),
    }


@router.get("/v1/models", status_code=HTTPStatus.OK)
@router.get("/anthropic/v1/models", status_code=HTTPStatus.OK)
async def get_models() -> dict:
    return list_models()


async def _relay_stream(upstream: UpstreamResponse, prefix: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in strip_tool_prefix_stream(upstream.aiter_bytes(), prefix):
            if chunk:
                yield chunk
    except httpx.HTTPError as exc:
        logger.warning("Upstream stream ended early: %s", exc)
    finally:
        await upstream.aclose()


@router.post("/v1/messages")
@router.post("/anthropic/v1/messages")
async def proxy_messages(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    token_service: Annotated[Any, Depends(get_token_service)],
    version_lookup: Annotated[Any, Depends(get_version_lookup)],
    upstream_client: Annotated[Any, Depends(get_upstream_client)],
) -> Response:
    """Authenticate, rewrite and forward a Messages API call with OAuth credentials."""
    if not is_authorized(request.headers, settings.gateway.proxy_secret):
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Unauthorized")

    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Invalid JSON body"
        ) from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Invalid JSON body")

    try:
        access_token = await token_service.get_valid_access_token()
    except CredentialRefreshError as exc:
        logger.error("Failed to get access token: %s", exc)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": "Token error", "message": str(exc)},
        )

    upstream_settings = settings.upstream
    prefix = upstream_settings.tool_prefix
    payload = transform_request_body(body, tool_prefix=prefix)
    headers = build_upstream_headers(
        access_token,
        await version_lookup.get_version(),
        request.headers.get("anthropic-beta"),
        api_version=upstream_settings.api_version,
        required_betas=upstream_settings.beta_flags,
    )

    try:
        upstream = await upstream_client.send(payload, headers)
    except UpstreamTransportError as exc:
        logger.error("Upstream request failed: %s", exc)
        return JSONResponse(
            status_code=HTTPStatus.BAD_GATEWAY,
            content={"error": "Upstream error", "message": str(exc)},
        )

    if payload.get("stream"):
        return StreamingResponse(
            _relay_stream(upstream, prefix),
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type", "text/event-stream"),
            headers={"Cache-Control": "no-cache"},
            # Runs even when the client leaves before the body starts.
            background=BackgroundTask(upstream.aclose),
        )

    try:
        raw = await upstream.aread()
    finally:
        await upstream.aclose()

    return Response(
        content=strip_tool_prefix(raw.decode("utf-8", errors="replace"), prefix),
        status_code=upstream.status_code,
        media_type="application/json",
    )
