"""Authentication schemas."""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class SignUpRequest(BaseModel):
    """Sign up request body."""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    """Login request body."""
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserPublic(BaseModel):
    id: str
    name: str
    email: str


class TokenResponse(BaseModel):
    """Response containing JWT token after sign up or login."""
    token: str
    user: UserPublic


class MeResponse(BaseModel):
    user: Optional[UserPublic] = None
