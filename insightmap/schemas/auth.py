"""Authentication schemas for Supabase JWT tokens."""

from typing import Optional, Dict, Any

from pydantic import BaseModel, Field


class JWTClaims(BaseModel):
    """Decoded claims from a Supabase access token."""

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User email")
    role: str = Field(default="authenticated", description="User role")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")
    aud: Optional[str] = Field(None, description="Audience")

    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: str = Field(..., description="Supabase user ID; owner of every row the user writes")
    email: Optional[str] = Field(None, description="User email")
    role: str = Field(default="authenticated", description="User role")


__all__ = ["JWTClaims", "CurrentUser"]
