"""
Helpers for retrieving and refreshing the gateway's OAuth access token.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from max_proxy.clients import AnthropicOAuthClient, KeyValueStore
from max_proxy.clients.anthropic_oauth import CredentialRefreshError
from max_proxy.core.config import OAuthSettings, StoreSettings
from max_proxy.models.credentials import CredentialRecord
from max_proxy.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class OAuthTokenService:
    """Owns the cached credential record and keeps its access token usable."""

    REFRESH_MARGIN_MS = 60_000

    def __init__(
        self,
        store: KeyValueStore,
        oauth_client: AnthropicOAuthClient,
        oauth_settings: OAuthSettings,
        store_settings: StoreSettings,
        token_cipher: Optional[TokenCipherService] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._oauth_settings = oauth_settings
        self._store_settings = store_settings
        self._cipher = token_cipher
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_fresh(self, record: CredentialRecord, now_ms: int) -> bool:
        return record.remaining_ms(now_ms) > self.REFRESH_MARGIN_MS

    async def _load_record(
        self, *, migrate_plaintext: bool = True
    ) -> Optional[CredentialRecord]:
        raw = await self._store.get(self._store_settings.key)
        if raw is None:
            return None

        migrate = False
        if self._cipher is not None:
            if TokenCipherService.is_plaintext_record(raw):
                # Written before encryption was enabled; re-save sealed.
                migrate = migrate_plaintext
            else:
                try:
                    raw = self._cipher.decrypt(raw)
                except ValueError as exc:
                    logger.warning("Ignoring unreadable credential record: %s", exc)
                    return None

        try:
            record = CredentialRecord.from_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed credential record in store")
            return None

        if migrate:
            await self._save_record(record)
        return record

    async def _save_record(self, record: CredentialRecord) -> None:
        value = record.to_json()
        if self._cipher is not None:
            value = self._cipher.encrypt(value)
        await self._store.put(
            self._store_settings.key,
            value,
            ttl_seconds=self._store_settings.ttl_seconds,
        )

    def _provisioned_record(self) -> Optional[CredentialRecord]:
        settings = self._oauth_settings
        if not (
            settings.access_token
            and settings.refresh_token
            and settings.access_token_expires_at
        ):
            return None
        return CredentialRecord(
            access_token=settings.access_token,
            refresh_token=settings.refresh_token,
            expires_at=settings.access_token_expires_at,
        )

    async def get_valid_access_token(self) -> str:
        """Return an access token valid for at least another minute.

        Every failure, including an unreachable credential store, surfaces as
        ``CredentialRefreshError``.
        """
        try:
            return await self._acquire_access_token()
        except CredentialRefreshError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Credential store failure while acquiring a token")
            raise CredentialRefreshError(f"Credential store error: {exc}") from exc

    async def _acquire_access_token(self) -> str:
        cached = await self._load_record()
        now_ms = self._now_ms()
        if cached is not None and self._is_fresh(cached, now_ms):
            return cached.access_token

        if cached is None:
            provisioned = self._provisioned_record()
            if provisioned is not None and self._is_fresh(provisioned, now_ms):
                logger.info("Seeding credential store from provisioned access token")
                await self._save_record(provisioned)
                return provisioned.access_token
            refresh_token = self._oauth_settings.refresh_token
        else:
            refresh_token = cached.refresh_token

        if not refresh_token:
            raise CredentialRefreshError(
                "No refresh token available; set CLAUDE_REFRESH_TOKEN."
            )

        logger.info("Refreshing access token...")
        access_token, rotated_refresh, expires_in = await self._oauth.refresh_token(
            refresh_token
        )
        record = CredentialRecord(
            access_token=access_token,
            refresh_token=rotated_refresh or refresh_token,
            expires_at=self._now_ms() + expires_in * 1000,
        )
        await self._save_record(record)
        return record.access_token

    async def describe_status(self) -> str:
        """Human-readable cache state; never includes token values."""
        try:
            cached = await self._load_record(migrate_plaintext=False)
        except Exception as exc:  # pylint: disable=broad-except
            return f"error: {exc}"

        if cached is None:
            return "not cached (will use secret on first request)"
        remaining = cached.remaining_ms(self._now_ms())
        if remaining > 0:
            return f"valid (expires in {round(remaining / 1000 / 60)} minutes)"
        return "expired (will refresh on next request)"


__all__ = ["OAuthTokenService"]
