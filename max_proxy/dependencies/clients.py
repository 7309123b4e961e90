"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from max_proxy.clients import (
    AnthropicOAuthClient,
    ClientVersionLookup,
    DynamoDBKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
    UpstreamClient,
)
from max_proxy.core.config import get_settings
from max_proxy.services import OAuthTokenService, TokenCipherService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_store() -> KeyValueStore:
    """Provide the credential store for the configured backend."""
    store_settings = _settings().store
    if store_settings.backend == "memory":
        return MemoryKeyValueStore()
    if store_settings.backend == "dynamodb":
        return DynamoDBKeyValueStore(store_settings)
    return SQLiteKeyValueStore(store_settings.db_path)


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide record encryption when a secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_oauth_client() -> AnthropicOAuthClient:
    """Create a singleton OAuth client."""
    return AnthropicOAuthClient(_settings().oauth)


@lru_cache()
def get_token_service() -> OAuthTokenService:
    """Provide the token lifecycle manager."""
    settings = _settings()
    return OAuthTokenService(
        store=get_token_store(),
        oauth_client=get_oauth_client(),
        oauth_settings=settings.oauth,
        store_settings=settings.store,
        token_cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_version_lookup() -> ClientVersionLookup:
    """Provide the client version lookup with its in-process cache."""
    return ClientVersionLookup(_settings().upstream)


@lru_cache()
def get_upstream_client() -> UpstreamClient:
    """Provide the forwarding client for the messages endpoint."""
    return UpstreamClient(_settings().upstream)


__all__ = [
    "get_oauth_client",
    "get_token_cipher_service",
    "get_token_service",
    "get_token_store",
    "get_upstream_client",
    "get_version_lookup",
]
