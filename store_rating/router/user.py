from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ..db import get_session
from ..models.rating import Rating, RatingEdit, RatingRead, RatingStatus, RatingSubmit, UserRatingPage
from ..models.store import StoreSearchResponse, UserStorePage
from ..models.user import User
from ..query.listing import fetch_page, user_ratings_listing, user_stores_listing
from ..query.pager import Pager
from ..services import ratings as rating_service
from ..services import search, stores
from ..utils.auth import get_current_user
from ..utils.utils import get_pager, positive_id

router = APIRouter()

@router.get("/stores", response_model=UserStorePage)
async def list_stores(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    store_rows, pagination = await fetch_page(
        session, user_stores_listing(current_user.id), request.query_params, pager
    )
    return {"stores": store_rows, "pagination": pagination}

@router.get("/stores/{store_id}")
async def get_store(
    store_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    store_id = positive_id(store_id, "Invalid store ID provided.")
    return {"store": await stores.get_store_detail(session, store_id)}

@router.get("/search/stores", response_model=StoreSearchResponse)
async def search_stores(
    q: Optional[str] = None,
    use_fulltext: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await search.search_stores(session, q, use_fulltext)

# Only the caller's own active ratings
@router.get("/ratings", response_model=UserRatingPage)
async def list_my_ratings(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    rating_rows, pagination = await fetch_page(
        session,
        user_ratings_listing(),
        request.query_params,
        pager,
        scope=[Rating.user_id == current_user.id, Rating.status == RatingStatus.active],
    )
    return {"ratings": rating_rows, "pagination": pagination}

@router.get("/rating/{rating_id}")
async def get_my_rating(
    rating_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    rating_id = positive_id(rating_id, "Invalid rating ID provided.")
    rating = await rating_service.get_own_rating(session, current_user, rating_id)
    return {"rating": RatingRead.model_validate(rating, from_attributes=True)}

@router.post("/rate/{store_id}", status_code=status.HTTP_201_CREATED)
async def rate_store(
    store_id: str,
    rating_input: RatingSubmit,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    store_id = positive_id(store_id, "Invalid store ID provided.")
    rating = await rating_service.submit_rating(
        session, current_user, store_id, rating_input.score, rating_input.text
    )
    return {"message": "Rating submitted successfully.", "rating": RatingRead.model_validate(rating, from_attributes=True)}

@router.put("/edit/rating/{rating_id}")
async def edit_rating(
    rating_id: str,
    rating_input: RatingEdit,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    rating_id = positive_id(rating_id, "Invalid rating ID provided.")
    rating = await rating_service.edit_rating(session, current_user, rating_id, rating_input)
    return {"message": "Rating updated successfully.", "rating": RatingRead.model_validate(rating, from_attributes=True)}
