import asyncio
from store_rating.db import init_db
from store_rating.models.user import UserBase, UserRole
from store_rating.core.config import get_settings
from store_rating.services.accounts import create_user, get_user_by_email

DEFAULT_ADDRESS = "Central Admin Office, City 123"

default_users = [
    ("admin1", "admin@og.com", "admin@123", UserRole.admin),
    ("user1", "user56@og.com", "user@123", UserRole.normal_user),
    ("owener1", "owener1@og.com", "owener@123", UserRole.store_owner),
]

async def seed_users():
    settings = get_settings()
    database = init_db(settings)

    async with database.session_factory() as session:
        for name, email, password, role in default_users:
            # Check if the account already exists
            if await get_user_by_email(session, email):
                print(f"{role.value} already exists: {email}")
                continue

            await create_user(
                session,
                UserBase(name=name, email=email, address=DEFAULT_ADDRESS),
                password,
                role,
            )
            print(f"Added {role.value}: {email}")

    await database.dispose()
    print("All default accounts have been added or already exist.")

if __name__ == "__main__":
    asyncio.run(seed_users())
