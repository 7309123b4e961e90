"""Service layer exports."""

from .auth import is_authorized
from .headers import build_upstream_headers, merge_beta_flags
from .models_catalog import list_models
from .oauth_tokens import OAuthTokenService
from .request_transform import transform_request_body
from .response_transform import strip_tool_prefix, strip_tool_prefix_stream
from .token_cipher import TokenCipherService

__all__ = [
    "OAuthTokenService",
    "TokenCipherService",
    "build_upstream_headers",
    "is_authorized",
    "list_models",
    "merge_beta_flags",
    "strip_tool_prefix",
    "strip_tool_prefix_stream",
    "transform_request_body",
]
