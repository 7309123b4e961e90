"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_oauth_client,
    get_token_cipher_service,
    get_token_service,
    get_token_store,
    get_upstream_client,
    get_version_lookup,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_oauth_client",
    "get_token_cipher_service",
    "get_token_service",
    "get_token_store",
    "get_upstream_client",
    "get_version_lookup",
]
