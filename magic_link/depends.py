from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from magic_link.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from magic_link.app.services.token_issuer import TokenIssuer
from magic_link.app.services.token_settings import TokenSettings, load_token_settings
from magic_link.app.services.token_validator import TokenValidator

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_token_settings() -> TokenSettings:
    """
    Token settings built once from ApplicationConfig.

    Raises:
        ConfigurationError: if settings are out of range or keys are unreadable
    """
    return load_token_settings(ApplicationConfig)


# Cached per settings value, like get_token_settings
@lru_cache
def _token_issuer_for(settings: TokenSettings) -> TokenIssuer:
    return TokenIssuer(settings)


@lru_cache
def _token_validator_for(settings: TokenSettings) -> TokenValidator:
    return TokenValidator(settings)


def get_token_issuer(
    settings: TokenSettings = Depends(get_token_settings),
) -> TokenIssuer:
    return _token_issuer_for(settings)


def get_token_validator(
    settings: TokenSettings = Depends(get_token_settings),
) -> TokenValidator:
    return _token_validator_for(settings)
