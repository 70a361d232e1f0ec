# mangastore/schemas/user.py
# Схемы регистрации, токена и публичного профиля пользователя.
import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from mangastore.models.user import RoleEnum, UserStatus
from mangastore.schemas.common import CamelModel

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegisterIn(CamelModel):
    """Данные регистрации. Email приводится к нижнему регистру."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=72)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=150)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v2 = v.strip().lower()
        if not EMAIL_RE.match(v2):
            raise ValueError("Invalid email format")
        return v2


class UserOut(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    role: RoleEnum
    status: UserStatus
    is_email_verified: bool = False
    created_at: datetime


class TokenOut(BaseModel):
    # формат OAuth2, без camelCase
    access_token: str
    token_type: str = "bearer"
