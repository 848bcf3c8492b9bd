import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from store_rating.core.errors import ValidationError, ConflictError, translate_integrity_error
from store_rating.models.store import Store, StoreBase
from store_rating.models.user import User, UserRole, UserBase, check_password
from store_rating.utils.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserBase, password: str, role: UserRole) -> User:
    if await get_user_by_email(session, data.email):
        raise ConflictError("Email already exists")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=get_password_hash(password),
        address=data.address,
        role=role,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise translate_integrity_error(exc, "Email already exists")
    await session.refresh(user)
    logger.info("Created %s account %s", role.value, user.id)
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def change_password(
    session: AsyncSession,
    user: User,
    old_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    if new_password != confirm_password:
        raise ValidationError("New password and confirmation do not match.")
    try:
        check_password(new_password)
    except ValueError as exc:
        raise ValidationError(str(exc))

    db_user = await session.get(User, user.id)
    if not verify_password(old_password, db_user.password_hash):
        raise ValidationError("Old password is incorrect.")

    db_user.password_hash = get_password_hash(new_password)
    session.add(db_user)
    await session.commit()
    logger.info("Password changed for user %s", user.id)


async def create_store(session: AsyncSession, data: StoreBase, owner_id: int) -> Store:
    owner = await session.get(User, owner_id)
    if not owner or owner.role != UserRole.store_owner:
        raise ValidationError("Owner must exist and be a store owner")

    if data.email:
        existing = await session.execute(select(Store.id).where(Store.email == data.email))
        if existing.first():
            raise ConflictError("Store email already exists")

    store = Store(
        name=data.name,
        address=data.address,
        email=data.email,
        owner_id=owner_id,
    )
    session.add(store)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise translate_integrity_error(exc, "Store email already exists")
    await session.refresh(store)
    logger.info("Created store %s for owner %s", store.id, owner_id)
    return store
