import os

# Must be set before blog_api is imported
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from typing import AsyncGenerator, Dict, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.config import Settings
from blog_api.db.session import Database
from blog_api.main import create_app
from blog_api.services.identity_service import IdentityService

# Test database URL - in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

class InMemoryRedis:
    """Stands in for RedisService so tests need no Redis server"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.expiry: Dict[str, Optional[int]] = {}

    async def set(self, key: str, value: str, expire: Optional[int] = None):
        self.store[key] = value
        self.expiry[key] = expire

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def close(self):
        pass

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        TESTING=True,
        TEST_DATABASE_URL=TEST_DATABASE_URL,
        RATE_LIMIT_ENABLED=False,
    )

@pytest.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh in-memory database per test"""
    database = Database(test_settings.database_url)
    await database.create_all()
    yield database
    await database.close()

@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session

@pytest.fixture
def redis() -> InMemoryRedis:
    return InMemoryRedis()

@pytest.fixture
def app(test_settings: Settings, database: Database, redis: InMemoryRedis):
    return create_app(test_settings, database=database, redis=redis)

@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create a test user"""
    return await IdentityService(db_session).upsert_user(
        "github",
        {"id": 1001, "login": "octocat", "name": "The Octocat", "avatar_url": "https://github.com/octocat.png"}
    )

@pytest.fixture
async def other_user(db_session: AsyncSession):
    return await IdentityService(db_session).upsert_user(
        "qq",
        {"openid": "qq-openid-42", "nickname": "QQ User", "figureurl_qq_2": "https://q1.qlogo.cn/42.png"}
    )

@pytest.fixture
def sign_in(client: AsyncClient):
    """Sign in through the API and return (auth headers, user json)"""
    async def _sign_in(provider: str = "github", **payload):
        if not payload:
            payload = {"id": 1001, "login": "octocat", "avatar_url": "https://github.com/octocat.png"}
        response = await client.post(f"/api/auth/signin/{provider}", json=payload)
        assert response.status_code == 200, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['accessToken']}"}, data["user"]
    return _sign_in
