from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from magic_link.app.services.crypto import generate_rsa_key_pair
from magic_link.app.services.token_issuer import TokenIssuer
from magic_link.app.services.token_settings import TokenSettings
from magic_link.app.services.token_validator import TokenValidator
from tests.unit.fakes import FakeInvitationRepository, FakeUnitOfWork, FrozenClock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.invitations = MagicMock()
    uow.invitations.get_by_id = AsyncMock()
    uow.invitations.get_by_token_hash = AsyncMock()
    uow.invitations.create = AsyncMock()
    uow.invitations.conditional_update = AsyncMock(return_value=True)
    uow.invitations.list_expired = AsyncMock(return_value=[])
    return uow


@pytest.fixture(scope="session")
def key_pair():
    return generate_rsa_key_pair()


@pytest.fixture(scope="session")
def other_key_pair():
    return generate_rsa_key_pair()


@pytest.fixture
def settings(key_pair):
    private_key, public_key = key_pair
    return TokenSettings(private_key=private_key, public_key=public_key)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 2, 9, 30, 0))


@pytest.fixture
def issuer(settings, clock):
    return TokenIssuer(settings, clock=clock)


@pytest.fixture
def validator(settings, clock):
    return TokenValidator(settings, clock=clock)


@pytest.fixture
def invitations():
    return FakeInvitationRepository()


@pytest.fixture
def fake_uow(invitations):
    return FakeUnitOfWork(invitations)
