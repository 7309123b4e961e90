"""Tests for the OAuth, version-lookup and upstream HTTP clients."""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from max_proxy.clients.anthropic_oauth import (
    AnthropicOAuthClient,
    CredentialRefreshError,
    OAuthTokenExchangeError,
)
from max_proxy.clients.upstream import UpstreamClient, UpstreamTransportError
from max_proxy.clients.version_lookup import ClientVersionLookup
from max_proxy.core.config import OAuthSettings, UpstreamSettings

pytestmark = pytest.mark.anyio


def _oauth_settings() -> OAuthSettings:
    return OAuthSettings(
        CLAUDE_OAUTH_CLIENT_ID="client-123",
        CLAUDE_OAUTH_TOKEN_URL="https://auth.example/v1/oauth/token",
    )


async def test_refresh_posts_json_grant_and_parses_tokens() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"access_token": "new-at", "refresh_token": "new-rt", "expires_in": 3600},
        )

    client = AnthropicOAuthClient(_oauth_settings(), transport=httpx.MockTransport(handler))

    assert await client.refresh_token("old-rt") == ("new-at", "new-rt", 3600)
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://auth.example/v1/oauth/token"
    assert json.loads(request.content) == {
        "grant_type": "refresh_token",
        "refresh_token": "old-rt",
        "client_id": "client-123",
    }


async def test_refresh_rejection_carries_status_and_body() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(401, text='{"error":"invalid_grant"}')
    )
    client = AnthropicOAuthClient(_oauth_settings(), transport=transport)

    with pytest.raises(CredentialRefreshError) as excinfo:
        await client.refresh_token("old-rt")

    assert excinfo.value.status_code == 401
    assert excinfo.value.body == '{"error":"invalid_grant"}'
    assert "401" in str(excinfo.value)
    assert "old-rt" not in str(excinfo.value)


async def test_refresh_network_failure_is_refresh_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = AnthropicOAuthClient(_oauth_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(CredentialRefreshError):
        await client.refresh_token("old-rt")


async def test_refresh_incomplete_payload_is_refresh_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"access_token": "x"}))
    client = AnthropicOAuthClient(_oauth_settings(), transport=transport)

    with pytest.raises(CredentialRefreshError):
        await client.refresh_token("old-rt")


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {"access_token": "x", "expires_in": "soon"},
        {"access_token": "x", "expires_in": {"seconds": 60}},
    ],
)
async def test_refresh_malformed_payload_is_refresh_error(payload) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    client = AnthropicOAuthClient(_oauth_settings(), transport=transport)

    with pytest.raises(CredentialRefreshError) as excinfo:
        await client.refresh_token("old-rt")

    assert excinfo.value.status_code == 200


async def test_authorization_code_exchange() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200, json={"access_token": "at", "refresh_token": "rt", "expires_in": 28800}
        )

    client = AnthropicOAuthClient(_oauth_settings(), transport=httpx.MockTransport(handler))

    tokens = await client.exchange_authorization_code("the-code", state="st", code_verifier="ver")

    assert tokens["refresh_token"] == "rt"
    assert seen[0]["grant_type"] == "authorization_code"
    assert seen[0]["code_verifier"] == "ver"
    assert seen[0]["state"] == "st"


async def test_authorization_code_rejection() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(400, text="bad code"))
    client = AnthropicOAuthClient(_oauth_settings(), transport=transport)

    with pytest.raises(OAuthTokenExchangeError):
        await client.exchange_authorization_code("x", state="s", code_verifier="v")


def test_authorization_url_contains_pkce_parameters() -> None:
    client = AnthropicOAuthClient(_oauth_settings())

    url = urlparse(client.build_authorization_url(code_challenge="chal", state="ver"))
    params = {key: values[0] for key, values in parse_qs(url.query).items()}

    assert url.netloc == "claude.ai"
    assert params["code"] == "true"
    assert params["client_id"] == "client-123"
    assert params["code_challenge"] == "chal"
    assert params["code_challenge_method"] == "S256"
    assert params["state"] == "ver"
    assert params["scope"] == "org:create_api_key user:profile user:inference"


async def test_version_lookup_reads_latest_tag_and_caches() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"dist-tags": {"latest": "9.8.7", "next": "10.0.0"}})

    lookup = ClientVersionLookup(UpstreamSettings(), transport=httpx.MockTransport(handler))

    assert await lookup.get_version() == "9.8.7"
    assert await lookup.get_version() == "9.8.7"
    assert len(calls) == 1


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503),
        httpx.Response(200, json={"versions": {}}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["unexpected"]),
    ],
)
async def test_version_lookup_falls_back(response: httpx.Response) -> None:
    lookup = ClientVersionLookup(
        UpstreamSettings(CLAUDE_CODE_VERSION="1.0.0", VERSION_CACHE_TTL=0),
        transport=httpx.MockTransport(lambda request: response),
    )

    assert await lookup.get_version() == "1.0.0"


async def test_version_lookup_timeout_falls_back() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow registry", request=request)

    lookup = ClientVersionLookup(
        UpstreamSettings(CLAUDE_CODE_VERSION="1.0.0"),
        transport=httpx.MockTransport(handler),
    )

    assert await lookup.get_version() == "1.0.0"


async def test_upstream_client_posts_to_beta_endpoint() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = UpstreamClient(
        UpstreamSettings(ANTHROPIC_API_URL="https://upstream.example/v1/messages"),
        transport=httpx.MockTransport(handler),
    )

    response = await client.send({"model": "m"}, {"Authorization": "Bearer at"})
    try:
        assert response.status_code == 200
        assert json.loads(await response.aread()) == {"ok": True}
    finally:
        await response.aclose()

    assert seen[0].url.params["beta"] == "true"
    assert seen[0].headers["Authorization"] == "Bearer at"


async def test_upstream_client_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = UpstreamClient(UpstreamSettings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamTransportError):
        await client.send({}, {})
