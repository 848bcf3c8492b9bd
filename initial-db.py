import asyncio
from store_rating import db
from store_rating.core import config

async def recreate_tables(settings):
    database = db.init_db(settings)
    try:
        await database.recreate_tables()
    finally:
        await database.dispose()

if __name__ == "__main__":
    settings = config.get_settings()
    print(f"Recreating tables on {settings.DATABASE_URL}")
    asyncio.run(recreate_tables(settings))
