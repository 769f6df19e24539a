from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from magic_link.adapter.repositories.invitation_repository import InvitationRepository
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.errors import StoreUnavailableError


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        self.invitations = InvitationRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def rollback(self):
        await self.session.rollback()
