"""
Auth request/response schemas.
"""
from pydantic import BaseModel, EmailStr, field_validator

BCRYPT_LIMIT_BYTES = 72


def _check_password(v: str) -> str:
    if not v:
        raise ValueError("Password is required")
    if len(v.encode("utf-8")) > BCRYPT_LIMIT_BYTES:
        raise ValueError("Password must be at most 72 bytes (bcrypt limit)")
    return v


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: str
    email: str
