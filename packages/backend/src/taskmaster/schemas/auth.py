"""Pydantic schemas for registration and login.

Field rules (length limits, email syntax) are enforced by AuthService,
not here, so the same checks apply whether a login comes through the
API or straight from Python.
"""

from datetime import datetime

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    user_id: int
    name: str
    email: str
    user_created_at: datetime


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}
