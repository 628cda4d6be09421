# store_ratings/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from store_ratings.schemas.base import CamelModel
from store_ratings.schemas.enums import UserRole


class UserCreate(CamelModel):
    name: str = Field(..., min_length=3, max_length=60)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    address: Optional[str] = Field(None, max_length=400)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str
    role: Optional[UserRole] = None


class PasswordUpdate(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class RoleUpdate(CamelModel):
    role: UserRole


class UserResponse(CamelModel):
    id: int
    name: str
    email: EmailStr
    address: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool


class UserListItem(UserResponse):
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserResponse


class UserCreatedResponse(CamelModel):
    message: str
    user: UserResponse
