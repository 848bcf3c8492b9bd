"""
Paginated, filtered and sorted listings of users, stores and ratings.

Each listing is described once (base statement, count statement, filter
allow-list, sort allow-list) and executed by ``fetch_page``, which always runs
the count query first and the page query second, both with the same
predicates.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import asc, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import select

from store_rating.models.rating import Rating, RatingStatus
from store_rating.models.store import Store
from store_rating.models.user import User, UserRole
from store_rating.query.aggregation import (
    STORE_COLUMNS,
    average_rating_order,
    with_average_rating,
)
from store_rating.query.pager import Pager
from store_rating.query.predicates import (
    ChoiceFilter,
    IntegerFilter,
    PredicateBuilder,
    TextFilter,
)

logger = logging.getLogger(__name__)

DEFAULT_SORT = "created_at"


class Sorting:
    """Sort allow-list. Unknown fields fall back to the default, descending unless order is exactly "asc"."""

    def __init__(self, fields: Dict[str, Any], default: str = DEFAULT_SORT):
        self.fields = fields
        self.default = default

    def resolve(self, sort: Optional[str]) -> str:
        if sort in self.fields:
            return sort
        return self.default

    def order_by(self, sort: Optional[str], order: Optional[str], tie_breaker=None) -> List[Any]:
        direction = asc if order == "asc" else desc
        clauses = [direction(self.fields[self.resolve(sort)])]
        if tie_breaker is not None:
            clauses.append(direction(tie_breaker))
        return clauses


@dataclass
class Listing:
    name: str
    total_key: str
    statement: Any
    count_statement: Any
    sorting: Sorting
    filters: PredicateBuilder = field(default_factory=lambda: PredicateBuilder({}))
    tie_breaker: Any = None
    # values already bound by the base statement itself (e.g. a correlated subquery)
    leading_params: int = 0


async def fetch_page(
    session: AsyncSession,
    listing: Listing,
    params: Mapping[str, Any],
    pager: Pager,
    scope: Sequence[Any] = (),
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Run one listing.

    ``scope`` holds the caller-bound conditions (own stores, own ratings); they
    are always applied, ahead of the user supplied filters, and filter input
    can only narrow them further.
    """
    filters = listing.filters.build(params)
    conditions = [*scope, *filters.clauses()]

    statement = listing.statement
    count_statement = listing.count_statement
    if conditions:
        statement = statement.where(*conditions)
        count_statement = count_statement.where(*conditions)

    if logger.isEnabledFor(logging.DEBUG):
        fragments, values = filters.render(start=listing.leading_params + len(scope) + 1)
        logger.debug("%s filters: %s %s", listing.name, " AND ".join(fragments) or "-", values)

    total = (await session.execute(count_statement)).scalar_one()

    statement = (
        statement.order_by(
            *listing.sorting.order_by(params.get("sort"), params.get("order"), listing.tie_breaker)
        )
        .limit(pager.limit)
        .offset(pager.offset)
    )
    result = await session.execute(statement)
    rows = [dict(row) for row in result.mappings().all()]

    return rows, pager.paginate(total).as_dict(listing.total_key)


def admin_users_listing() -> Listing:
    return Listing(
        name="users",
        total_key="totalUsers",
        statement=select(User.id, User.name, User.email, User.address, User.role, User.created_at),
        count_statement=select(func.count()).select_from(User),
        filters=PredicateBuilder({
            "name": TextFilter(User.name),
            "email": TextFilter(User.email),
            "role": ChoiceFilter(User.role, UserRole),
            "address": TextFilter(User.address),
        }),
        sorting=Sorting({
            "name": User.name,
            "email": User.email,
            "role": User.role,
            "created_at": User.created_at,
        }),
        tie_breaker=User.id,
    )


def admin_stores_listing() -> Listing:
    return Listing(
        name="stores",
        total_key="totalStores",
        statement=with_average_rating(select(*STORE_COLUMNS)),
        count_statement=select(func.count()).select_from(Store),
        filters=PredicateBuilder({
            "name": TextFilter(Store.name),
            "email": TextFilter(Store.email),
            "address": TextFilter(Store.address),
            "owner_id": IntegerFilter(Store.owner_id),
        }),
        sorting=Sorting({
            "name": Store.name,
            "email": Store.email,
            "average_rating": average_rating_order(),
            "created_at": Store.created_at,
        }),
        tie_breaker=Store.id,
    )


def user_stores_listing(user_id: int) -> Listing:
    own = aliased(Rating)

    def own_rating(column, label):
        return (
            select(column)
            .where(
                own.store_id == Store.id,
                own.user_id == user_id,
                own.status == RatingStatus.active,
            )
            .correlate(Store)
            .scalar_subquery()
            .label(label)
        )

    statement = with_average_rating(
        select(
            Store.id,
            Store.name,
            Store.address,
            Store.created_at,
            own_rating(own.score, "user_rating"),
            own_rating(own.rating_id, "user_rating_id"),
        )
    )
    return Listing(
        name="stores",
        total_key="totalStores",
        statement=statement,
        count_statement=select(func.count()).select_from(Store),
        filters=PredicateBuilder({
            "name": TextFilter(Store.name),
            "address": TextFilter(Store.address),
        }),
        sorting=Sorting({
            "name": Store.name,
            "address": Store.address,
            "average_rating": average_rating_order(),
            "created_at": Store.created_at,
        }),
        tie_breaker=Store.id,
        leading_params=1,
    )


def owner_stores_listing() -> Listing:
    return Listing(
        name="stores",
        total_key="totalStores",
        statement=with_average_rating(
            select(Store.id, Store.name, Store.address, Store.email, Store.created_at),
            count_ratings=True,
        ),
        count_statement=select(func.count()).select_from(Store),
        filters=PredicateBuilder({
            "name": TextFilter(Store.name),
            "address": TextFilter(Store.address),
        }),
        sorting=Sorting({
            "name": Store.name,
            "average_rating": average_rating_order(),
            "created_at": Store.created_at,
        }),
        tie_breaker=Store.id,
    )


def _ratings_with_names(*extra_columns):
    return (
        select(
            Rating.rating_id,
            Rating.store_id,
            Store.name.label("store_name"),
            Rating.user_id,
            User.name.label("user_name"),
            *extra_columns,
            Rating.score,
            Rating.text,
            Rating.likes_count,
            Rating.status,
            Rating.created_at,
            Rating.updated_at,
        )
        .select_from(Rating)
        .join(Store, Rating.store_id == Store.id)
        .join(User, Rating.user_id == User.id)
    )


def _ratings_count():
    return (
        select(func.count())
        .select_from(Rating)
        .join(Store, Rating.store_id == Store.id)
        .join(User, Rating.user_id == User.id)
    )


def _store_id_filter():
    return IntegerFilter(Rating.store_id, strict=True, message="Invalid store_id filter value.")


def _score_filter(reject_blank=False):
    return IntegerFilter(
        Rating.score,
        minimum=1,
        maximum=5,
        strict=True,
        message="Score filter must be an integer between 1 and 5.",
        reject_blank=reject_blank,
    )


def admin_ratings_listing() -> Listing:
    return Listing(
        name="ratings",
        total_key="totalRatings",
        statement=_ratings_with_names(),
        count_statement=_ratings_count(),
        filters=PredicateBuilder({
            "store_id": _store_id_filter(),
            "user_id": IntegerFilter(Rating.user_id, strict=True, message="Invalid user_id filter value."),
            "score": _score_filter(reject_blank=True),
            "status": ChoiceFilter(
                Rating.status, RatingStatus, strict=True, message="Invalid status filter value."
            ),
        }),
        sorting=Sorting({
            "rating_id": Rating.rating_id,
            "store_id": Rating.store_id,
            "user_id": Rating.user_id,
            "score": Rating.score,
            "status": Rating.status,
            "created_at": Rating.created_at,
            "updated_at": Rating.updated_at,
        }),
        tie_breaker=Rating.rating_id,
    )


def user_ratings_listing() -> Listing:
    return Listing(
        name="ratings",
        total_key="totalRatings",
        statement=select(
            Rating.rating_id,
            Rating.store_id,
            Store.name.label("store_name"),
            Rating.score,
            Rating.text,
            Rating.created_at,
            Rating.updated_at,
        )
        .select_from(Rating)
        .join(Store, Rating.store_id == Store.id),
        count_statement=select(func.count()).select_from(Rating),
        filters=PredicateBuilder({"store_id": _store_id_filter()}),
        sorting=Sorting({
            "store_name": Store.name,
            "score": Rating.score,
            "created_at": Rating.created_at,
        }),
        tie_breaker=Rating.rating_id,
    )


def owner_ratings_listing() -> Listing:
    return Listing(
        name="ratings",
        total_key="totalRatings",
        statement=_ratings_with_names(User.email.label("user_email")),
        count_statement=_ratings_count(),
        filters=PredicateBuilder({
            "store_id": _store_id_filter(),
            "score": _score_filter(),
        }),
        sorting=Sorting({
            "created_at": Rating.created_at,
            "score": Rating.score,
            "user_name": User.name,
            "store_name": Store.name,
        }),
        tie_breaker=Rating.rating_id,
    )
