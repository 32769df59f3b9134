import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plaque_registry.config import settings
from plaque_registry.database import build_engine, create_tables, get_db
from plaque_registry.main import app
from plaque_registry.seed import seed_data


@pytest.fixture(autouse=True, scope="session")
def test_settings():
    # Cheap hashes keep the suite fast
    settings.bcrypt_rounds = 4
    settings.admin_email = "admin@example.com"
    settings.admin_password = "password"
    settings.secret_key = "test-secret"


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite3'}")
    await create_tables(engine)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        await seed_data(session)

    async def _get_test_db():
        async with maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    yield maker
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session
