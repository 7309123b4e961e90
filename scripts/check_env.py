"""Pre-flight validation of the gateway configuration.

Loads ``AppSettings`` from an env file and reports anything that would make the
gateway fail at request time instead of at startup: a store backend missing
its table, a beta flag list without the OAuth flag, or no usable credential
source. Secret values are never printed.

    python -m scripts.check_env --env-file /opt/max-proxy/.env
    python -m scripts.check_env --strict
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Tuple

from pydantic import ValidationError

from max_proxy.core.config import AppSettings, _load_env_file
from max_proxy.services.oauth_tokens import OAuthTokenService

EXIT_OK = 0
EXIT_WARNINGS = 1
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5

OAUTH_BETA_FLAG = "oauth-2025-04-20"


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def review_settings(
    settings: AppSettings, *, now_ms: int | None = None
) -> Tuple[List[str], List[str]]:
    """Return ``(errors, warnings)`` for a loaded configuration."""
    errors: List[str] = []
    warnings: List[str] = []
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms

    if settings.store.backend == "dynamodb" and not settings.store.dynamodb_table_name:
        errors.append("TOKEN_STORE_BACKEND=dynamodb requires DYNAMODB_TABLE_NAME.")
    if OAUTH_BETA_FLAG not in settings.upstream.beta_flags:
        errors.append(
            f"ANTHROPIC_BETA_FLAGS must include {OAUTH_BETA_FLAG}; "
            "the provider rejects OAuth tokens without it."
        )
    if not settings.upstream.tool_prefix:
        errors.append("TOOL_PREFIX must not be empty.")

    oauth = settings.oauth
    if not oauth.refresh_token:
        warnings.append(
            "CLAUDE_REFRESH_TOKEN is not set; the gateway cannot recover once "
            "the cached token record expires."
        )
    if oauth.access_token and not oauth.access_token_expires_at:
        warnings.append(
            "CLAUDE_ACCESS_TOKEN is ignored without CLAUDE_ACCESS_TOKEN_EXPIRES_AT."
        )
    elif (
        oauth.access_token
        and oauth.access_token_expires_at
        and oauth.access_token_expires_at - now_ms <= OAuthTokenService.REFRESH_MARGIN_MS
    ):
        warnings.append("CLAUDE_ACCESS_TOKEN has already expired and will not be used.")

    return errors, warnings


def _summary(settings: AppSettings) -> str:
    credential = "refresh token" if settings.oauth.refresh_token else "cached record only"
    encryption = "on" if settings.security.token_encryption_secret else "off"
    return (
        f"store={settings.store.backend} "
        f"upstream={settings.upstream.api_url} "
        f"credentials={credential} "
        f"encryption={encryption}"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate the gateway configuration.")
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when warnings are reported.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    errors, warnings = review_settings(settings)
    for message in errors:
        print(f"Error: {message}", file=sys.stderr)
    for message in warnings:
        print(f"Warning: {message}", file=sys.stderr)

    if errors:
        return EXIT_VALIDATION_ERROR
    if warnings and args.strict:
        return EXIT_WARNINGS

    print(f"Configuration OK: {_summary(settings)}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
