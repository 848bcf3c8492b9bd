from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from typing import Optional

from ..core.errors import NotFoundError
from ..db import get_session
from ..models.rating import Rating, RatingPage
from ..models.store import Store, StoreCreate, StorePage, StoreRead, StoreSearchResponse
from ..models.user import User, UserCreate, UserDetail, UserPage, UserRead, UserRole, UserSearchResponse
from ..query.listing import admin_ratings_listing, admin_stores_listing, admin_users_listing, fetch_page
from ..query.pager import Pager
from ..services import accounts, search, stores
from ..utils.auth import require_role
from ..utils.utils import get_pager, positive_id

router = APIRouter()
admin_only = require_role(UserRole.admin)

@router.post("/create/user", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_input: UserCreate,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    user = await accounts.create_user(session, user_input, user_input.password, user_input.role)
    return {"message": "User created successfully", "user": UserRead.model_validate(user, from_attributes=True)}

@router.post("/create/store", status_code=status.HTTP_201_CREATED)
async def create_store(
    store_input: StoreCreate,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    store = await accounts.create_store(session, store_input, store_input.owner_id)
    return {"message": "Store created successfully", "store": StoreRead.model_validate(store, from_attributes=True)}

# Role filter values outside the allow-list are ignored here
@router.get("/users", response_model=UserPage)
async def list_users(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    users, pagination = await fetch_page(session, admin_users_listing(), request.query_params, pager)
    return {"users": users, "pagination": pagination}

@router.get("/stores", response_model=StorePage)
async def list_stores(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    store_rows, pagination = await fetch_page(session, admin_stores_listing(), request.query_params, pager)
    return {"stores": store_rows, "pagination": pagination}

# Every rating filter is validated strictly and answers 400 on bad input
@router.get("/ratings", response_model=RatingPage)
async def list_ratings(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    ratings, pagination = await fetch_page(session, admin_ratings_listing(), request.query_params, pager)
    return {"ratings": ratings, "pagination": pagination}

@router.get("/dashboard")
async def dashboard(
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    total_users = await session.execute(select(func.count()).select_from(User))
    total_stores = await session.execute(select(func.count()).select_from(Store))
    # all submitted ratings, whatever their status
    total_ratings = await session.execute(select(func.count()).select_from(Rating))
    return {
        "dashboardData": {
            "totalUsers": total_users.scalar_one(),
            "totalStores": total_stores.scalar_one(),
            "totalRatings": total_ratings.scalar_one(),
        }
    }

@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    user_id = positive_id(user_id, "Invalid user ID provided.")
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found.")

    detail = UserDetail.model_validate(user, from_attributes=True)
    if user.role == UserRole.store_owner:
        detail.store_rating = await stores.get_owner_store_rating(session, user.id)
    return {"user": detail}

@router.get("/stores/{store_id}")
async def get_store(
    store_id: str,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    store_id = positive_id(store_id, "Invalid store ID provided.")
    return {"store": await stores.get_store_detail(session, store_id)}

@router.get("/search/stores", response_model=StoreSearchResponse)
async def search_stores(
    q: Optional[str] = None,
    use_fulltext: Optional[str] = None,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    return await search.search_stores(session, q, use_fulltext)

@router.get("/search/users", response_model=UserSearchResponse)
async def search_users(
    q: Optional[str] = None,
    current_user: User = Depends(admin_only),
    session: AsyncSession = Depends(get_session)
):
    return await search.search_users(session, q)
