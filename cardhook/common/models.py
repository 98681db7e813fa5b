from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class AuthorizationStatus(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuthorizationResponse(BaseModel):
    """Body of the authorizations reply. Empty fields are left out of the JSON."""

    status: AuthorizationStatus | None = None
    status_detail: str | None = None
    message: str | None = None

    @field_validator("status_detail", "message")
    @classmethod
    def _blank_is_absent(cls, v: str | None) -> str | None:
        return v or None

    def to_bytes(self) -> bytes:
        """Exact bytes that get signed and written to the response."""
        return self.model_dump_json(exclude_none=True).encode("utf-8")
