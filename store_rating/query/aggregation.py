from sqlalchemy import and_, func, literal_column, or_
from sqlmodel import select

from store_rating.models.rating import Rating, RatingStatus
from store_rating.models.store import Store

AVERAGE_RATING = "average_rating"
TOTAL_RATINGS_COUNT = "total_ratings_count"
SEARCH_RANK = "rank"

SIMPLE_SEARCH_LIMIT = 50
FULLTEXT_SEARCH_LIMIT = 20

STORE_COLUMNS = (
    Store.id,
    Store.name,
    Store.address,
    Store.email,
    Store.owner_id,
    Store.created_at,
)


def average_rating():
    return func.coalesce(func.round(func.avg(Rating.score), 2), 0).label(AVERAGE_RATING)


def total_ratings_count():
    return func.count(Rating.rating_id).label(TOTAL_RATINGS_COUNT)


def average_rating_order():
    # ORDER BY must name the output column; the aggregate is not in GROUP BY
    return literal_column(AVERAGE_RATING)


def active_ratings_of(store_id):
    return and_(Rating.store_id == store_id, Rating.status == RatingStatus.active)


def with_average_rating(statement, *group_by, count_ratings=False):
    """
    Extend a store query with the derived average score of its active ratings.
    """
    columns = [average_rating()]
    if count_ratings:
        columns.append(total_ratings_count())
    return (
        statement.add_columns(*columns)
        .outerjoin(Rating, active_ratings_of(Store.id))
        .group_by(Store.id, *group_by)
    )


def store_search_statement(term: str, use_fulltext: bool = False):
    pattern = f"%{term}%"
    statement = with_average_rating(select(*STORE_COLUMNS))
    if not use_fulltext:
        return (
            statement.where(
                or_(
                    Store.name.ilike(pattern),
                    Store.address.ilike(pattern),
                    Store.email.ilike(pattern),
                )
            )
            .order_by(Store.name.asc())
            .limit(SIMPLE_SEARCH_LIMIT)
        )

    document = func.to_tsvector("english", Store.name + " " + Store.address)
    query = func.plainto_tsquery("english", term)
    rank = func.ts_rank_cd(document, query).label(SEARCH_RANK)
    return (
        statement.add_columns(rank)
        .where(or_(document.op("@@")(query), Store.email.ilike(pattern)))
        .order_by(literal_column(SEARCH_RANK).desc(), Store.name.asc())
        .limit(FULLTEXT_SEARCH_LIMIT)
    )
