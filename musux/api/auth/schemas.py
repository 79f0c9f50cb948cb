"""Pydantic schemas for the Spotify auth relay.

Field names follow the browser client's JSON (camelCase), which the relay
keeps for wire compatibility. Both fields of the token request are optional
here so the route can answer 400 with its own message instead of a 422.
"""

from typing import Optional

from pydantic import BaseModel


class TokenRequest(BaseModel):
    code: Optional[str] = None
    redirectUri: Optional[str] = None


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


class AuthUrlResponse(BaseModel):
    authUrl: str
