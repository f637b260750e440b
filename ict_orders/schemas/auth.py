"""Authentication-related request and response schemas."""

from pydantic import BaseModel, ConfigDict


class RegisterRequest(BaseModel):
    """Client self-registration payload."""

    email: str
    password: str
    name: str
    contact_number: str | None = None
    address: str | None = None


class LoginRequest(BaseModel):
    """Payload for user login."""

    username: str
    password: str


class TokenResponse(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"


class AuthUserResponse(BaseModel):
    """User response for auth endpoints."""

    id: int
    username: str
    role: str
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)
