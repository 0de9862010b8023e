"""User DTOs for the Service Layer.

Framework-agnostic input contracts (Pydantic v2, immutable) between the
DRF views and ``UserService``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CreateUserDTO(BaseModel):
    """Account sign-up: e-mail plus a plain password (hashed by the model)."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class CreateAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    street: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=20)
    complement: str = Field(default="", max_length=255)
    district: str = Field(min_length=1, max_length=120)
    city: str = Field(min_length=1, max_length=120)
    state: str = Field(min_length=2, max_length=2)
    zip_code: str = Field(min_length=8, max_length=9)

    @field_validator("state")
    @classmethod
    def uppercase_state(cls, v: str) -> str:
        return v.upper()
