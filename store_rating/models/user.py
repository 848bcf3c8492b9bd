import re
from enum import Enum
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Any, Dict, Optional, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .store import Store
    from .rating import Rating

# 8-16 chars, at least one lowercase letter and one special character
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[!@#$%^&*])[\w!@#$%^&*]{8,16}$")
PASSWORD_RULE = "Password must be 8-16 characters, include at least one lowercase letter and one special character (!@#$%^&*)"


class UserRole(str, Enum):
    admin = "admin"
    normal_user = "normal_user"
    store_owner = "store_owner"


def check_password(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULE)
    return value


class UserBase(BaseModel):
    name: str = Field(min_length=2, max_length=60)
    email: EmailStr
    address: Optional[str] = Field(default=None, max_length=400)


class UserRegister(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def password_rule(cls, value: str) -> str:
        return check_password(value)


class UserCreate(UserRegister):
    role: UserRole


class UserLoginInput(BaseModel):
    email: str
    password: str


class ChangePasswordInput(BaseModel):
    oldPassword: str
    newPassword: str
    confirmPassword: str


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    address: Optional[str] = None
    role: UserRole
    created_at: datetime


class UserDetail(UserRead):
    updated_at: datetime
    store_rating: Optional[float] = None


class UserPage(BaseModel):
    users: List[UserRead]
    pagination: Dict[str, Any]


class UserSearchResponse(BaseModel):
    searchTerm: str
    results: List[UserRead]
    count: int


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=60)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str
    address: Optional[str] = Field(default=None, max_length=400)
    role: UserRole = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    stores: List["Store"] = Relationship(back_populates="owner")
    ratings: List["Rating"] = Relationship(back_populates="user")
