from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models.rating import OwnerRatingPage, Rating, RatingStatus
from ..models.store import OwnerStoreCreate, OwnerStorePage, Store, StoreRead
from ..models.user import User, UserRole
from ..query.listing import fetch_page, owner_ratings_listing, owner_stores_listing
from ..query.pager import Pager
from ..services import accounts, stores
from ..utils.auth import require_role
from ..utils.utils import get_pager, positive_id

router = APIRouter()
owner_only = require_role(UserRole.store_owner)

@router.post("/create/store", status_code=status.HTTP_201_CREATED)
async def create_store(
    store_input: OwnerStoreCreate,
    current_user: User = Depends(owner_only),
    session: AsyncSession = Depends(get_session)
):
    store = await accounts.create_store(session, store_input, current_user.id)
    return {"message": "Store created successfully", "store": StoreRead.model_validate(store, from_attributes=True)}

# Only ever the caller's own stores
@router.get("/stores", response_model=OwnerStorePage)
async def list_my_stores(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(owner_only),
    session: AsyncSession = Depends(get_session)
):
    store_rows, pagination = await fetch_page(
        session,
        owner_stores_listing(),
        request.query_params,
        pager,
        scope=[Store.owner_id == current_user.id],
    )
    recent = await stores.get_recent_ratings(session, [store["id"] for store in store_rows])
    return {"stores": stores.attach_recent_ratings(store_rows, recent), "pagination": pagination}

@router.get("/store/{store_id}")
async def get_my_store(
    request: Request,
    store_id: str,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(owner_only),
    session: AsyncSession = Depends(get_session)
):
    store_id = positive_id(store_id, "Invalid store ID provided.")
    store = await stores.get_owned_store(session, current_user.id, store_id)
    metrics = await stores.get_store_metrics(session, store.id)
    ratings, pagination = await fetch_page(
        session,
        owner_ratings_listing(),
        request.query_params,
        pager,
        scope=[Rating.store_id == store.id, Rating.status == RatingStatus.active],
    )
    page = OwnerRatingPage(ratings=ratings, pagination=pagination)
    return {
        "store": StoreRead.model_validate(store, from_attributes=True),
        "metrics": metrics,
        "ratings": page.ratings,
        "pagination": page.pagination,
    }

@router.get("/dashboard/ratings", response_model=OwnerRatingPage)
async def list_my_store_ratings(
    request: Request,
    pager: Pager = Depends(get_pager),
    current_user: User = Depends(owner_only),
    session: AsyncSession = Depends(get_session)
):
    ratings, pagination = await fetch_page(
        session,
        owner_ratings_listing(),
        request.query_params,
        pager,
        scope=[Store.owner_id == current_user.id, Rating.status == RatingStatus.active],
    )
    return {"ratings": ratings, "pagination": pagination}
