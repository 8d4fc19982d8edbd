"""Pydantic schemas for signup, login, status and the current user.

Learn: Separate input schemas from read schemas. No read schema has a
password field, so a hash can never be serialized outward.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class SignupRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=5)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
    expires_at: datetime


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=255)

    model_config = {"str_strip_whitespace": True}


class StatusRead(BaseModel):
    status: str


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CurrentUserRead(UserRead):
    """The caller's own account, with the ids of the posts they created."""
    posts: list[uuid.UUID] = []
