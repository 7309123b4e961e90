"""
Anthropic OAuth utilities.

These helpers cover the one-time authorization-code login and the refresh
exchange the gateway performs whenever its cached access token runs out.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from max_proxy.core.config import OAuthSettings


class CredentialRefreshError(Exception):
    """Raised when a refresh exchange cannot be completed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint rejects an authorization code."""


class AnthropicOAuthClient:
    """Build authorization URLs and talk to the OAuth token endpoint."""

    def __init__(
        self,
        settings: OAuthSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def client_id(self) -> str:
        return self._settings.client_id

    def build_authorization_url(self, *, code_challenge: str, state: str) -> str:
        """Construct the consent URL for the PKCE login flow."""
        params = {
            "code": "true",
            "client_id": self._settings.client_id,
            "response_type": "code",
            "redirect_uri": self._settings.redirect_uri,
            "scope": self._settings.scopes,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": state,
        }
        return f"{self._settings.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, code: str, *, state: str, code_verifier: str
    ) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns the raw token payload (``access_token``, ``refresh_token``,
        ``expires_in`` ...).
        """
        payload = {
            "code": code,
            "state": state,
            "grant_type": "authorization_code",
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
            "code_verifier": code_verifier,
        }

        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                response = await client.post(self._settings.token_url, json=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            raise OAuthTokenExchangeError(
                f"Token exchange failed: {response.status_code} {response.text}"
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token exchange returned a non-JSON payload.") from exc
        if not isinstance(token_payload, dict):
            raise OAuthTokenExchangeError("Token exchange returned an unexpected payload.")
        if not token_payload.get("access_token") or not token_payload.get("refresh_token"):
            raise OAuthTokenExchangeError("Incomplete token payload returned by the provider.")
        return token_payload

    async def refresh_token(self, refresh_token: str) -> Tuple[str, Optional[str], int]:
        """
        Mint a new access token from a refresh token.

        Returns ``(access_token, rotated_refresh_token_or_None, expires_in_seconds)``.
        """
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._settings.client_id,
        }

        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                response = await client.post(self._settings.token_url, json=payload)
        except httpx.HTTPError as exc:
            raise CredentialRefreshError(f"Token refresh failed: {exc}") from exc

        if not response.is_success:
            raise CredentialRefreshError(
                f"Token refresh failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise CredentialRefreshError(
                "Token refresh returned a non-JSON payload.",
                status_code=response.status_code,
            ) from exc

        if not isinstance(token_payload, dict):
            raise CredentialRefreshError(
                "Token refresh returned an unexpected payload.",
                status_code=response.status_code,
            )

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise CredentialRefreshError(
                "Incomplete refresh payload returned by the provider.",
                status_code=response.status_code,
            )

        try:
            lifetime = int(expires_in)
        except (TypeError, ValueError) as exc:
            raise CredentialRefreshError(
                f"Token refresh returned a non-numeric expires_in: {expires_in!r}",
                status_code=response.status_code,
            ) from exc

        return access_token, token_payload.get("refresh_token"), lifetime


__all__ = [
    "AnthropicOAuthClient",
    "CredentialRefreshError",
    "OAuthTokenExchangeError",
]
