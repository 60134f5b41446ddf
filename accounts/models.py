"""
Pydantic models for user accounts and authentication payloads.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.networks import validate_email


class Role(int, Enum):
    """Access tier of a user. Encoded numerically on the wire."""
    USER = 0
    ADMIN = 1


def check_email_format(value: str) -> str:
    """Reject malformed addresses but keep the submitted string unchanged."""
    validate_email(value)
    return value


class RegisterRequest(BaseModel):
    """Registration body."""
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., description="Unique login email, stored as submitted")
    password: str = Field(..., min_length=8, description="Plain text password")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return check_email_format(v)


REGISTER_MESSAGES = {
    "name": "Name is required",
    "email": "Please include a valid email",
    "password": "Please enter a password with 8 or more characters",
}


class LoginRequest(BaseModel):
    """Login body."""
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Plain text password")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return check_email_format(v)


LOGIN_MESSAGES = {
    "email": "Please include a valid email",
    "password": "Password is required",
}


class UserRecord(BaseModel):
    """User document as stored in the users collection."""
    id: Optional[str] = Field(None, description="Store identifier")
    name: str
    email: str
    password: str = Field(..., description="bcrypt hash")
    role: Role = Role.USER
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict:
        """Document for insertion, without the id."""
        return self.model_dump(exclude={"id"})


class AuthenticatedUser(BaseModel):
    """Identity decoded from a verified bearer token."""
    id: str
    role: Role

    def to_claims(self) -> dict:
        return {"id": self.id, "role": self.role.value}


class TokenResponse(BaseModel):
    token: str
