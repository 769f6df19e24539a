from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from magic_link.app.repositories.invitation_repository import IInvitationRepository
from magic_link.domain.entities import SupplierInvitation, TokenState
from magic_link.domain.errors import StoreUnavailableError
from magic_link.domain.state_machine import TERMINAL_STATES


class InvitationRepository(IInvitationRepository):
    """Invitation repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_token_hash(self, token_hash: str) -> Optional[SupplierInvitation]:
        """Get invitation by token hash"""
        # populate_existing: a conditional update may have changed the row
        # behind an instance already loaded in this session
        stmt = (
            select(SupplierInvitation)
            .where(SupplierInvitation.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def get_by_id(self, invitation_id: str) -> Optional[SupplierInvitation]:
        """Get invitation by ID"""
        stmt = (
            select(SupplierInvitation)
            .where(SupplierInvitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def create(self, invitation: SupplierInvitation) -> SupplierInvitation:
        """Create a new invitation"""
        try:
            self.session.add(invitation)
            await self.session.flush()
            await self.session.refresh(invitation)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return invitation

    async def conditional_update(
        self,
        invitation_id: str,
        expected_state: TokenState,
        expected_attempts: int,
        changes: Dict[str, Any],
    ) -> bool:
        """Single UPDATE guarded by state and attempt counter (compare-and-swap)"""
        stmt = (
            update(SupplierInvitation)
            .where(SupplierInvitation.id == invitation_id)
            .where(SupplierInvitation.token_state == expected_state)
            .where(SupplierInvitation.validation_attempts == expected_attempts)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return result.rowcount == 1

    async def list_expired(
        self, now: datetime, limit: int = 500
    ) -> List[SupplierInvitation]:
        """Non-terminal invitations past their expiry"""
        stmt = (
            select(SupplierInvitation)
            .where(SupplierInvitation.expires_at < now)
            .where(SupplierInvitation.token_state.not_in(list(TERMINAL_STATES)))
            .order_by(SupplierInvitation.expires_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
