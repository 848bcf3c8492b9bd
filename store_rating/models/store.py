from pydantic import BaseModel, EmailStr
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .user import User
    from .rating import Rating


class StoreBase(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=1, max_length=400)
    email: Optional[EmailStr] = None


class OwnerStoreCreate(StoreBase):
    pass


class StoreCreate(StoreBase):
    owner_id: int = Field(gt=0)


class StoreRead(BaseModel):
    id: int
    name: str
    address: str
    email: Optional[str] = None
    owner_id: int
    created_at: datetime


class StoreListItem(BaseModel):
    id: int
    name: str
    address: str
    email: Optional[str] = None
    owner_id: Optional[int] = None
    created_at: datetime
    average_rating: float


class UserStoreListItem(BaseModel):
    id: int
    name: str
    address: str
    created_at: datetime
    average_rating: float
    user_rating: Optional[int] = None
    user_rating_id: Optional[int] = None


class StoreDetail(StoreListItem):
    owner_name: str
    updated_at: datetime


class RecentRating(BaseModel):
    rating_id: int
    score: int
    text: Optional[str] = None
    rating_created_at: datetime
    user_id: int
    user_name: str
    user_email: str


class OwnerStoreListItem(BaseModel):
    id: int
    name: str
    address: str
    email: Optional[str] = None
    created_at: datetime
    average_rating: float
    total_ratings_count: int
    recent_ratings: List[RecentRating] = []


class StoreSearchResult(StoreListItem):
    rank: Optional[float] = None


class StoreSearchResponse(BaseModel):
    searchTerm: str
    searchType: str
    results: List[StoreSearchResult]
    count: int


class StorePage(BaseModel):
    stores: List[StoreListItem]
    pagination: Dict[str, Any]


class UserStorePage(BaseModel):
    stores: List[UserStoreListItem]
    pagination: Dict[str, Any]


class OwnerStorePage(BaseModel):
    stores: List[OwnerStoreListItem]
    pagination: Dict[str, Any]


class Store(SQLModel, table=True):
    __tablename__ = "stores"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    address: str = Field(max_length=400)
    email: Optional[str] = Field(default=None, unique=True, max_length=255)
    owner_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    owner: "User" = Relationship(back_populates="stores")
    ratings: List["Rating"] = Relationship(back_populates="store")
