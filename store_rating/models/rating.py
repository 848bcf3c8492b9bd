from enum import Enum
from pydantic import BaseModel, StrictInt
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .user import User
    from .store import Store


class RatingStatus(str, Enum):
    active = "active"
    pending = "pending"
    rejected = "rejected"


class RatingSubmit(BaseModel):
    score: StrictInt = Field(..., ge=1, le=5)
    text: Optional[str] = None


class RatingEdit(BaseModel):
    """Only the fields present in the request body are applied."""
    score: Optional[StrictInt] = Field(default=None, ge=1, le=5)
    text: Optional[str] = None


class RatingRead(BaseModel):
    rating_id: int
    store_id: int
    user_id: int
    score: int
    text: Optional[str] = None
    likes_count: int
    status: RatingStatus
    created_at: datetime
    updated_at: datetime


class UserRatingListItem(BaseModel):
    rating_id: int
    store_id: int
    store_name: str
    score: int
    text: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RatingListItem(UserRatingListItem):
    user_id: int
    user_name: str
    likes_count: int
    status: RatingStatus


class OwnerRatingListItem(RatingListItem):
    user_email: str


class RatingPage(BaseModel):
    ratings: List[RatingListItem]
    pagination: Dict[str, Any]


class UserRatingPage(BaseModel):
    ratings: List[UserRatingListItem]
    pagination: Dict[str, Any]


class OwnerRatingPage(BaseModel):
    ratings: List[OwnerRatingListItem]
    pagination: Dict[str, Any]


class Rating(SQLModel, table=True):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("store_id", "user_id", name="uq_ratings_store_user"),
        CheckConstraint("score >= 1 AND score <= 5", name="ck_ratings_score"),
    )

    rating_id: Optional[int] = Field(default=None, primary_key=True)
    store_id: int = Field(foreign_key="stores.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    score: int
    text: Optional[str] = Field(default="")
    likes_count: int = Field(default=0)
    status: RatingStatus = Field(default=RatingStatus.active, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    store: "Store" = Relationship(back_populates="ratings")
    user: "User" = Relationship(back_populates="ratings")
