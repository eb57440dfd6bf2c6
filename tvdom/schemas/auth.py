"""
Authentication schemas for request/response validation.

This provides:
1. Registration and login request validation
2. The {user, session} response shape the client persists
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from tvdom.schemas.users import UserResponse

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class RegisterRequest(BaseModel):
    """Schema for user registration requests."""

    username: str = Field(
        ..., min_length=3, max_length=50, description="Unique public handle"
    )
    email: EmailStr = Field(..., description="User's email address")
    display_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description="User's password (min 8 characters)",
    )
    confirm_password: Optional[str] = Field(
        None, description="Must match password when provided"
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username may only contain letters, numbers and underscores")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "moviebuff",
                "email": "user@example.com",
                "display_name": "Movie Buff",
                "password": "SecurePass123!",
                "confirm_password": "SecurePass123!",
            }
        }
    )


class LoginRequest(BaseModel):
    """Schema for user login requests."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "password": "SecurePass123!"}
        }
    )


class SessionInfo(BaseModel):
    """Session marker stored by the client and mirrored into cookies."""

    user_id: int
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class AuthResponse(BaseModel):
    user: UserResponse
    session: SessionInfo
