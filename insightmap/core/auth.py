"""Supabase access-token verification and the ``get_current_user`` dependency.

Authentication only supplies the owner identifier; it never decides what the
owner may see. Row scoping happens in the repositories.
"""

from typing import Annotated, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from insightmap.schemas.auth import CurrentUser, JWTClaims
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

AUDIENCE = "authenticated"

bearer_scheme = HTTPBearer(auto_error=False)


class JWTVerifier:
    """Verifies HS256 Supabase access tokens with the project's JWT secret."""

    def __init__(self, supabase_url: str, jwt_secret: str):
        """
        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Supabase JWT secret for HS256 verification
        """
        self.expected_issuer = f"{supabase_url.rstrip('/')}/auth/v1"
        self.jwt_secret = jwt_secret

    def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired or not configured
        """
        if not self.jwt_secret:
            raise jwt.InvalidTokenError("SUPABASE_JWT_SECRET is not configured")

        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=AUDIENCE,
                issuer=self.expected_issuer,
                options={"require": ["sub", "exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidSignatureError as e:
            raise jwt.InvalidTokenError("Invalid token signature") from e

        return JWTClaims(**payload)


def get_jwt_verifier(request: Request) -> JWTVerifier:
    return request.app.state.jwt_verifier


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    verifier: Annotated[JWTVerifier, Depends(get_jwt_verifier)],
) -> CurrentUser:
    """Resolve the authenticated user from the ``Authorization: Bearer`` header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Rejected access token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    LOGGER.debug(f"Authenticated user {claims.sub}")
    return CurrentUser(id=claims.sub, email=claims.email, role=claims.role)
