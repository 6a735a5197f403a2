"""Wire schemas for the ``/auth`` endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator
from sqlmodel import Field, SQLModel

WireRole = Literal["SE", "PA"]


class RegisterPayload(SQLModel):
    """Body for ``POST /auth/register``."""

    username: str = Field(min_length=2)
    email: str
    password: str = Field(min_length=6)
    role: WireRole


class LoginPayload(SQLModel):
    """Body for ``POST /auth/login``."""

    email: str
    password: str = Field(min_length=1)


class TokenResponse(SQLModel):
    """Token issued by register and login."""

    access_token: str
    token_type: str = "bearer"


class ProfileWire(SQLModel):
    """Caller profile returned by ``GET /auth/profile``."""

    id: str
    username: str = ""
    email: str = ""
    role: str
    created_at: str | None = None

    @field_validator("id", "created_at", mode="before")
    @classmethod
    def _as_text(cls, value: object) -> str | None:
        return None if value is None else str(value)
