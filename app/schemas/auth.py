"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for login; login is a username or an email address."""

    login: str = Field(..., min_length=1, max_length=190, description="Username or email")
    password: str = Field(..., min_length=1, max_length=32, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class ErrorResponse(BaseModel):
    """Body of 401/404/422 responses raised from domain errors."""

    message: str
    errors: dict[str, list[str]] | None = None
