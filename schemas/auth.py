"""Authentication and health schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TokenClaims(BaseModel):
    """Claims of a Supabase access token."""

    model_config = ConfigDict(extra="allow")  # Supabase adds session claims over time

    sub: str = Field(..., description="Supabase user ID (subject)")
    email: str | None = Field(default=None, description="User email address")
    role: str | None = Field(default=None, description="Postgres role, usually 'authenticated'")
    aud: list[str] | str | None = Field(default=None, description="JWT audience")
    iat: int | None = Field(default=None, description="JWT issued at")
    exp: int | None = Field(default=None, description="JWT expiration time")
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthenticatedUser(BaseModel):
    """Simplified authenticated user for internal use."""

    user_id: str = Field(..., description="Supabase user ID")
    email: str | None = Field(default=None, description="User email")
    role: str | None = Field(default=None, description="Token role")


class AuthError(Exception):
    """Authentication error exception."""

    def __init__(self, error: str, description: str, status_code: int = 401) -> None:
        """Initialize authentication error."""
        self.error = error
        self.description = description
        self.status_code = status_code
        super().__init__(f"{error}: {description}")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Service status")
    version: str = Field(..., description="Application version")
    timestamp: int = Field(..., description="Current timestamp")
