"""Pydantic models for the ``users`` table and auth payloads.

A ``users`` row is keyed by the identity provider's uid and holds the
display name used for mention resolution.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator


def _lower(value: str) -> str:
    return value.lower()


# Addresses are stored and compared lower-cased
Email = Annotated[EmailStr, AfterValidator(_lower)]


class User(BaseModel):
    """Directory entry returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    created_at: datetime | None = None


class SignUpRequest(BaseModel):
    name: str = Field(min_length=2)
    email: Email
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class SignInRequest(BaseModel):
    email: Email
    password: str = Field(min_length=6)


class ProfileUpdate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class AuthSession(BaseModel):
    """Response for sign-up / sign-in."""
    user: User
    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str = "bearer"
