"""Authentication-related request and response schemas."""

from pydantic import BaseModel, ConfigDict


class RegisterRequest(BaseModel):
    """Payload for user registration."""

    email: str
    password: str
    role: str
    display_name: str | None = None
    phone: str | None = None
    restaurant_id: int | None = None


class LoginRequest(BaseModel):
    """Payload for user login."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"


class AuthUserResponse(BaseModel):
    """User response for auth endpoints."""

    id: int
    email: str | None
    username: str
    display_name: str | None = None
    role: str
    restaurant_id: int | None = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class UserActiveUpdate(BaseModel):
    """Admin request to block (``False``) or unblock (``True``) an account."""

    is_active: bool
