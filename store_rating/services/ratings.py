"""
Rating lifecycle.

A rating is created once per (user, store) and afterwards only edited by its
author. The unique constraint in the database decides duplicate submissions;
non-owners get the same "not found" answer as for a missing rating.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from store_rating.core.errors import NotFoundError, ValidationError, translate_integrity_error
from store_rating.models.rating import Rating, RatingEdit, RatingStatus
from store_rating.models.store import Store
from store_rating.models.user import User

logger = logging.getLogger(__name__)

DUPLICATE_RATING = "You have already submitted a rating for this store."
RATING_NOT_FOUND = "Rating not found."


async def submit_rating(
    session: AsyncSession,
    user: User,
    store_id: int,
    score: int,
    text: Optional[str] = None,
) -> Rating:
    store = await session.get(Store, store_id)
    if not store:
        raise NotFoundError("Store not found.")

    rating = Rating(
        store_id=store_id,
        user_id=user.id,
        score=score,
        text=text if text is not None else "",
        status=RatingStatus.active,
    )
    session.add(rating)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise translate_integrity_error(exc, DUPLICATE_RATING)
    await session.refresh(rating)
    logger.info("User %s rated store %s with %s", user.id, store_id, score)
    return rating


async def get_own_rating(session: AsyncSession, user: User, rating_id: int) -> Rating:
    rating = await session.get(Rating, rating_id)
    if not rating or rating.user_id != user.id:
        raise NotFoundError(RATING_NOT_FOUND)
    return rating


async def edit_rating(session: AsyncSession, user: User, rating_id: int, changes: RatingEdit) -> Rating:
    """
    Apply the fields present in ``changes``. Score may not be cleared; text may
    be set to an empty string or null. Ratings in any status can be edited.
    """
    updates = changes.model_dump(include=changes.model_fields_set)
    if not updates:
        raise ValidationError("At least one field (score or text) must be provided for update.")
    if "score" in updates and updates["score"] is None:
        raise ValidationError("Score must be an integer between 1 and 5.")

    rating = await get_own_rating(session, user, rating_id)
    for key, value in updates.items():
        setattr(rating, key, value)
    rating.updated_at = datetime.utcnow()

    session.add(rating)
    await session.commit()
    await session.refresh(rating)
    logger.info("User %s edited rating %s", user.id, rating_id)
    return rating
