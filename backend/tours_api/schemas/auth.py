# backend/tours_api/schemas/auth.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Literal["Customer", "Supplier"] = "Customer"

    # Supplier profile (ignored for customers, "" when omitted)
    business_name: Optional[str] = Field(default=None, max_length=200)
    business_description: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        # Stored as supplied; only all-whitespace names are refused.
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class IdentitySummary(BaseModel):
    id: str
    email: EmailStr
    first_name: str
    last_name: str
    # primary role, kept for clients that only show one
    role: Optional[str] = None
    roles: list[str]


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: IdentitySummary


class SupplierProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_name: str
    description: str
    phone_number: str
    address: str
    is_approved: bool
