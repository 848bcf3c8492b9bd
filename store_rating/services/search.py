from typing import Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from store_rating.core.errors import ValidationError
from store_rating.models.user import User
from store_rating.query.aggregation import SIMPLE_SEARCH_LIMIT, store_search_statement


def require_search_term(q: Optional[str]) -> str:
    if not q or not q.strip():
        raise ValidationError("A non-empty search query (q) is required.")
    return q


async def search_stores(session: AsyncSession, q: Optional[str], use_fulltext: Optional[str] = None):
    """Full text search only runs on PostgreSQL."""
    term = require_search_term(q)
    fulltext = use_fulltext == "true"
    result = await session.execute(store_search_statement(term, fulltext))
    results = [dict(row) for row in result.mappings().all()]
    return {
        "searchTerm": term,
        "searchType": "fulltext" if fulltext else "simple_ilike",
        "results": results,
        "count": len(results),
    }


async def search_users(session: AsyncSession, q: Optional[str]):
    term = require_search_term(q)
    pattern = f"%{term}%"
    result = await session.execute(
        select(User.id, User.name, User.email, User.address, User.role, User.created_at)
        .where(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.address.ilike(pattern)))
        .order_by(User.name.asc())
        .limit(SIMPLE_SEARCH_LIMIT)
    )
    results = [dict(row) for row in result.mappings().all()]
    return {"searchTerm": term, "results": results, "count": len(results)}
