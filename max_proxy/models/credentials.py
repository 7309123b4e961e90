"""
Domain model for the persisted OAuth credential record.
"""

from pydantic import BaseModel, ConfigDict, Field


class CredentialRecord(BaseModel):
    """The single token record kept in the credential store.

    Serialized with camelCase keys; ``expiresAt`` is epoch milliseconds.
    Records are replaced whole, never edited in place.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    expires_at: int = Field(..., alias="expiresAt", description="Epoch milliseconds.")

    def remaining_ms(self, now_ms: int) -> int:
        return self.expires_at - now_ms

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "CredentialRecord":
        return cls.model_validate_json(raw)


__all__ = ["CredentialRecord"]
