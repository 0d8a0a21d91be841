"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=200)
    github_username: str | None = Field(default=None, max_length=39, pattern=r"^[A-Za-z0-9-]+$")


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(BaseModel):
    # If omitted, all sessions of the authenticated user are revoked.
    refresh_token: str | None = Field(default=None, min_length=20)


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    image: str | None = Field(default=None, max_length=2048)
    github_username: str | None = Field(default=None, max_length=39, pattern=r"^[A-Za-z0-9-]*$")


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    image: str | None = None
    github_username: str | None = None
    is_admin: bool = False
    is_active: bool
    created_at: datetime


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse
