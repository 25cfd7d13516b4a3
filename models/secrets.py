"""Schemas for JSON values kept in the parameter store."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field


class AccessTokenSecret(BaseModel):
    access_token: str = Field(..., min_length=1)
    token_expires_at: Optional[Union[int, float]] = Field(
        default=None, description="Unix seconds after which the token is considered stale."
    )


class Credentials(BaseModel):
    """Static OAuth2 client credentials provisioned out of band."""

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)
    token_url: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str = Field(..., min_length=1)
    token_type: Optional[str] = None
    # Not consulted; the stored lifetime is fixed.
    expires_in: Optional[float] = None
