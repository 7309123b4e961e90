#!/usr/bin/env python
"""One-time PKCE login that obtains access and refresh tokens for the proxy.

Run once from a machine with a browser, then provision the printed values as
the gateway's environment::

    python -m scripts.oauth_login
    python -m scripts.oauth_login --no-browser --output /tmp/tokens.json
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import hashlib
import json
import secrets
import sys
import time
import webbrowser
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Tuple

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from max_proxy.clients.anthropic_oauth import (  # noqa: E402
    AnthropicOAuthClient,
    OAuthTokenExchangeError,
)
from max_proxy.core.config import OAuthSettings  # noqa: E402

EXIT_OK = 0
EXIT_NO_CODE = 1
EXIT_EXCHANGE_ERROR = 2


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_pkce() -> Tuple[str, str]:
    """Return ``(verifier, challenge)`` using the S256 method."""
    verifier = _b64url(secrets.token_bytes(32))
    challenge = _b64url(hashlib.sha256(verifier.encode("ascii")).digest())
    return verifier, challenge


def split_pasted_code(pasted: str, verifier: str) -> Tuple[str, str]:
    """The consent page shows ``code#state``; state defaults to the verifier."""
    code, _, state = pasted.strip().partition("#")
    return code, state or verifier


def _env_lines(tokens: Dict[str, Any], obtained_at_ms: int) -> list[str]:
    expires_at = obtained_at_ms + int(tokens.get("expires_in", 0)) * 1000
    return [
        f"CLAUDE_ACCESS_TOKEN={tokens['access_token']}",
        f"CLAUDE_REFRESH_TOKEN={tokens['refresh_token']}",
        f"CLAUDE_ACCESS_TOKEN_EXPIRES_AT={expires_at}",
        "PROXY_SECRET=<choose-a-strong-secret>",
    ]


def _write_tokens(path: Path, tokens: Dict[str, Any]) -> None:
    path.write_text(
        json.dumps(
            {
                "access_token": tokens["access_token"],
                "refresh_token": tokens["refresh_token"],
                "expires_in": tokens.get("expires_in"),
                "obtained_at": datetime.now(timezone.utc).isoformat(),
            },
            indent=2,
        ),
        encoding="utf-8",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Log in with a Claude Pro/Max account and print proxy credentials."
    )
    parser.add_argument(
        "--output",
        default=".tokens.json",
        type=Path,
        help="Where to save the token payload (default: .tokens.json).",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Only print the authorization URL instead of opening a browser.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    client = AnthropicOAuthClient(OAuthSettings())  # type: ignore[call-arg]

    verifier, challenge = generate_pkce()
    authorize_url = client.build_authorization_url(code_challenge=challenge, state=verifier)

    print("Step 1: Open this URL in your browser:\n")
    print(authorize_url)
    print()
    if not args.no_browser:
        webbrowser.open(authorize_url)

    print("Step 2: Log in and click 'Authorize'.")
    print("Step 3: Paste the whole code shown afterwards (it may look like abc...#xyz).\n")
    pasted = input("Authorization code: ").strip()
    if not pasted:
        print("No code provided.", file=sys.stderr)
        return EXIT_NO_CODE

    code, state = split_pasted_code(pasted, verifier)
    obtained_at_ms = int(time.time() * 1000)
    try:
        tokens = asyncio.run(
            client.exchange_authorization_code(code, state=state, code_verifier=verifier)
        )
    except OAuthTokenExchangeError as exc:
        print(f"Error exchanging code: {exc}", file=sys.stderr)
        return EXIT_EXCHANGE_ERROR

    _write_tokens(args.output, tokens)
    print(f"\nTokens saved to {args.output} (expires in {tokens.get('expires_in')} seconds).")
    print("\nAdd these to the gateway environment:\n")
    for line in _env_lines(tokens, obtained_at_ms):
        print(line)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
