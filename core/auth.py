"""Supabase JWT bearer authentication."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from core.config import settings
from schemas.auth import AuthenticatedUser, AuthError, TokenClaims

logger = logging.getLogger(__name__)


class SupabaseJWTBearer(HTTPBearer):
    """Bearer token authentication for Supabase-issued access tokens."""

    def __init__(self, secret: str | None = None, audience: str | None = None):
        """Initialize with the project's JWT secret and expected audience."""
        # Missing credentials are reported as 401 by __call__, not 403 by HTTPBearer
        super().__init__(auto_error=False)
        self._secret = secret
        self._audience = audience

    @property
    def secret(self) -> str:
        return self._secret or settings.supabase_jwt_secret

    @property
    def audience(self) -> str:
        return self._audience or settings.supabase_jwt_audience

    def verify_token(self, token: str) -> TokenClaims:
        """Verify and decode a Supabase JWT."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=["HS256"],
                audience=self.audience,
            )
        except ExpiredSignatureError as e:
            raise AuthError(
                error="token_expired",
                description="Token has expired",
            ) from e
        except JWTClaimsError as e:
            raise AuthError(
                error="invalid_claims",
                description="Invalid token claims",
            ) from e
        except JWTError as e:
            raise AuthError(
                error="invalid_token",
                description="Invalid token",
            ) from e

        try:
            return TokenClaims(**payload)
        except ValueError as e:
            raise AuthError(
                error="invalid_token",
                description="Unable to parse authentication token",
            ) from e

    async def __call__(self, request: Request) -> TokenClaims:  # type: ignore[override]
        """Validate the bearer token and return its claims."""
        credentials: HTTPAuthorizationCredentials | None = await super().__call__(request)
        if not credentials or not credentials.credentials:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"error": "missing_token", "description": "Bearer token missing"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            return self.verify_token(credentials.credentials)
        except AuthError as e:
            logger.warning(f"Rejected bearer token: {e.error}")
            raise HTTPException(
                status_code=e.status_code,
                detail={"error": e.error, "description": e.description},
                headers={"WWW-Authenticate": "Bearer"},
            ) from e


# Global instance
supabase_jwt_bearer = SupabaseJWTBearer()


async def get_current_user(claims: TokenClaims = Depends(supabase_jwt_bearer)) -> AuthenticatedUser:  # noqa: B008
    """Get current authenticated user."""
    return AuthenticatedUser(
        user_id=claims.sub,
        email=claims.email,
        role=claims.role,
    )
