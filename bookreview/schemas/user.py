"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (email, name, password)
- UserResponse: The signed-in user's own data (never exposes password)
- UserPublicResponse: Minimal display fields embedded in reviews
- TokenResponse: JWT access token returned by login
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Example request body:
    {
        "email": "jane@example.com",
        "name": "Jane Doe",
        "password": "SecurePass123"
    }
    """

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["jane@example.com"],
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name shown next to reviews",
        examples=["Jane Doe"],
    )

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase and number)",
        examples=["SecurePass123"],
    )

    avatar: str | None = Field(
        default=None,
        max_length=2048,
        description="Avatar image URL",
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """
        Validate password strength.

        Requirements:
        - At least 8 characters (enforced by min_length)
        - At least 1 uppercase letter
        - At least 1 lowercase letter
        - At least 1 number
        """
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        return v


class UserPublicResponse(BaseModel):
    """Display fields for the author of a review."""

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    avatar: str | None = Field(default=None, description="Avatar image URL")

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserPublicResponse):
    """Full user data for the signed-in user."""

    email: EmailStr = Field(..., description="Email address")
    role: str = Field(..., description="Authorization role")
    is_active: bool = Field(..., description="Whether the account is active")
    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 7,
                "name": "Jane Doe",
                "avatar": None,
                "email": "jane@example.com",
                "role": "user",
                "is_active": True,
                "created_at": "2024-01-01T00:00:00Z",
            }
        },
    )


class TokenResponse(BaseModel):
    """JWT access token response."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse = Field(..., description="The authenticated user")
