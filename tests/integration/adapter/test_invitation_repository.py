from datetime import timedelta

import pytest

from magic_link.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from magic_link.domain.base import utcnow
from magic_link.domain.entities import SupplierInvitation, TokenState


def _invitation(invitation_id, state=TokenState.created, expires_in=timedelta(days=7)):
    now = utcnow()
    return SupplierInvitation(
        id=invitation_id,
        token_hash=invitation_id.ljust(64, "f"),
        token_id=f"jti-{invitation_id}",
        token_state=state,
        email="supplier@acme.com",
        issued_at=now,
        expires_at=now + expires_in,
    )


@pytest.mark.asyncio
async def test_create_and_lookup_by_hash(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.invitations.create(_invitation("inv-1"))
        await uow.commit()

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        by_hash = await uow.invitations.get_by_token_hash("inv-1".ljust(64, "f"))
        by_id = await uow.invitations.get_by_id("inv-1")
        missing = await uow.invitations.get_by_token_hash("0" * 64)

        assert by_hash.id == "inv-1"
        assert by_id.token_state == TokenState.created
        assert missing is None


@pytest.mark.asyncio
async def test_conditional_update_is_compare_and_swap(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.invitations.create(_invitation("inv-1"))
        await uow.commit()

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        first = await uow.invitations.conditional_update(
            "inv-1",
            TokenState.created,
            0,
            {"validation_attempts": 1, "token_state": TokenState.validated},
        )
        stale = await uow.invitations.conditional_update(
            "inv-1", TokenState.created, 0, {"validation_attempts": 1}
        )
        await uow.commit()

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        invitation = await uow.invitations.get_by_id("inv-1")

        assert invitation.validation_attempts == 1
        assert invitation.token_state == TokenState.validated

    assert first is True
    assert stale is False


@pytest.mark.asyncio
async def test_uncommitted_changes_roll_back(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.invitations.create(_invitation("inv-1"))
        await uow.commit()

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.invitations.conditional_update(
            "inv-1", TokenState.created, 0, {"token_state": TokenState.revoked}
        )

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        invitation = await uow.invitations.get_by_id("inv-1")

        assert invitation.token_state == TokenState.created


@pytest.mark.asyncio
async def test_list_expired_skips_terminal_and_fresh(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.invitations.create(_invitation("old", expires_in=timedelta(hours=-3)))
        await uow.invitations.create(
            _invitation("old-sent", TokenState.sent, timedelta(hours=-1))
        )
        await uow.invitations.create(
            _invitation("old-revoked", TokenState.revoked, timedelta(hours=-2))
        )
        await uow.invitations.create(_invitation("fresh"))
        await uow.commit()

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        expired_ids = [
            invitation.id for invitation in await uow.invitations.list_expired(utcnow())
        ]
        limited_ids = [
            invitation.id
            for invitation in await uow.invitations.list_expired(utcnow(), limit=1)
        ]

    assert expired_ids == ["old", "old-sent"]
    assert limited_ids == ["old"]
