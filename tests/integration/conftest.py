import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from magic_link.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from magic_link.app.services.crypto import generate_rsa_key_pair
from magic_link.app.services.token_settings import TokenSettings
from magic_link.depends import get_token_settings, get_unit_of_work


class IntegrationConfig(ApplicationConfig):
    API_PREFIX = ""
    CORS_ORIGINS = []


@pytest.fixture(scope="session")
def key_pair():
    return generate_rsa_key_pair()


@pytest.fixture
def token_settings(key_pair):
    private_key, public_key = key_pair
    return TokenSettings(
        private_key=private_key,
        public_key=public_key,
        link_base_url="https://suppliers.example.com",
    )


@pytest.fixture
def admin_headers():
    return {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session, token_settings):
    from httpx import ASGITransport
    from magic_link.api.app import create_app

    app = create_app(IntegrationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_token_settings] = lambda: token_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
