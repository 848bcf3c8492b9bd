import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from store_rating.core.config import Settings
from store_rating.main import create_app
from store_rating.models.store import Store, StoreBase
from store_rating.models.user import User, UserBase, UserRole
from store_rating.services.accounts import create_store, create_user
from store_rating.utils.auth import create_access_token

PASSWORD = "secret@123"

@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test-store-rating.db'}",
        SECRET_KEY="test-secret-key",
    )

@pytest_asyncio.fixture(scope="function")
async def app(settings):
    app = create_app(settings)
    await app.state.database.recreate_tables()  # ลบตารางก่อน แล้วสร้างใหม่
    yield app
    await app.state.database.dispose()

@pytest_asyncio.fixture
async def async_session(app):
    async with app.state.database.session_factory() as session:
        yield session

@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

@pytest.fixture
def auth_header(settings):
    def make(user: User):
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}
    return make

class Factory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def user(self, name: str, role: UserRole = UserRole.normal_user, address=None) -> User:
        email = f"{name.lower().replace(' ', '.')}@example.com"
        return await create_user(self.session, UserBase(name=name, email=email, address=address), PASSWORD, role)

    async def store(self, owner: User, name: str, address: str = "1 Main Street", email=None) -> Store:
        return await create_store(self.session, StoreBase(name=name, address=address, email=email), owner.id)

@pytest.fixture
def factory(async_session):
    return Factory(async_session)
