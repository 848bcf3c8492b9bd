from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from store_rating.core.errors import NotFoundError
from store_rating.models.rating import Rating, RatingStatus
from store_rating.models.store import Store, StoreDetail
from store_rating.models.user import User
from store_rating.query.aggregation import STORE_COLUMNS, with_average_rating

RECENT_RATINGS_PER_STORE = 5


async def get_store_detail(session: AsyncSession, store_id: int) -> StoreDetail:
    result = await session.execute(
        with_average_rating(
            select(*STORE_COLUMNS, Store.updated_at, User.name.label("owner_name"))
            .select_from(Store)
            .join(User, Store.owner_id == User.id),
            User.name,
        ).where(Store.id == store_id)
    )
    row = result.mappings().first()
    if not row:
        raise NotFoundError("Store not found.")
    return StoreDetail.model_validate(dict(row))


async def get_owned_store(session: AsyncSession, owner_id: int, store_id: int) -> Store:
    """Stores of other owners are reported as missing."""
    store = await session.get(Store, store_id)
    if not store or store.owner_id != owner_id:
        raise NotFoundError("Store not found.")
    return store


async def get_store_metrics(session: AsyncSession, store_id: int) -> Dict[str, Any]:
    result = await session.execute(
        with_average_rating(select(Store.id), count_ratings=True).where(Store.id == store_id)
    )
    row = result.mappings().first()
    if not row:
        return {"average_rating": 0.0, "total_ratings_count": 0}
    return {
        "average_rating": float(row["average_rating"]),
        "total_ratings_count": row["total_ratings_count"],
    }


async def get_owner_store_rating(session: AsyncSession, owner_id: int) -> float:
    result = await session.execute(
        with_average_rating(select(Store.id))
        .where(Store.owner_id == owner_id)
        .order_by(Store.id)
        .limit(1)
    )
    row = result.mappings().first()
    return float(row["average_rating"]) if row else 0.0


async def get_recent_ratings(
    session: AsyncSession,
    store_ids: List[int],
    per_store: int = RECENT_RATINGS_PER_STORE,
) -> Dict[int, List[Dict[str, Any]]]:
    """Newest active ratings of each store, at most ``per_store`` each."""
    recent: Dict[int, List[Dict[str, Any]]] = {store_id: [] for store_id in store_ids}
    if not store_ids:
        return recent

    result = await session.execute(
        select(
            Rating.rating_id,
            Rating.store_id,
            Rating.score,
            Rating.text,
            Rating.created_at.label("rating_created_at"),
            User.id.label("user_id"),
            User.name.label("user_name"),
            User.email.label("user_email"),
        )
        .select_from(Rating)
        .join(User, Rating.user_id == User.id)
        .where(Rating.store_id.in_(store_ids), Rating.status == RatingStatus.active)
        .order_by(Rating.created_at.desc(), Rating.rating_id.desc())
    )
    for row in result.mappings().all():
        ratings = recent[row["store_id"]]
        if len(ratings) < per_store:
            ratings.append(dict(row))
    return recent


def attach_recent_ratings(stores: List[Dict[str, Any]], recent: Dict[int, List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [{**store, "recent_ratings": recent.get(store["id"], [])} for store in stores]

