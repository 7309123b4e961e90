"""At-rest encryption for the stored credential record."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Seal and open serialized credential records with a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Return the plaintext; raises ``ValueError`` for foreign or tampered input."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise ValueError(
                "Failed to decrypt stored record; wrong secret or corrupt value."
            ) from exc
        return plaintext.decode("utf-8")

    @staticmethod
    def is_plaintext_record(value: str) -> bool:
        """Records written before encryption was enabled are bare JSON objects."""
        return value.lstrip().startswith("{")


__all__ = ["TokenCipherService"]
