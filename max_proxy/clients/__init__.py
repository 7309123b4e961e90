"""Expose constructed client wrappers."""

from .anthropic_oauth import (
    AnthropicOAuthClient,
    CredentialRefreshError,
    OAuthTokenExchangeError,
)
from .dynamodb import DynamoDBKeyValueStore
from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .upstream import UpstreamClient, UpstreamResponse, UpstreamTransportError
from .version_lookup import ClientVersionLookup

__all__ = [
    "AnthropicOAuthClient",
    "ClientVersionLookup",
    "CredentialRefreshError",
    "DynamoDBKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "OAuthTokenExchangeError",
    "SQLiteKeyValueStore",
    "UpstreamClient",
    "UpstreamResponse",
    "UpstreamTransportError",
]
