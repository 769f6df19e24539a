from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from magic_link.domain.entities import SupplierInvitation, TokenState


class IInvitationRepository(ABC):
    """
    Invitation record store interface - application layer

    Implementations raise StoreUnavailableError when the backing store
    cannot complete an operation.
    """

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[SupplierInvitation]:
        """Get invitation by SHA-256 token hash"""
        pass

    @abstractmethod
    async def get_by_id(self, invitation_id: str) -> Optional[SupplierInvitation]:
        """Get invitation by ID"""
        pass

    @abstractmethod
    async def create(self, invitation: SupplierInvitation) -> SupplierInvitation:
        """Create a new invitation"""
        pass

    @abstractmethod
    async def conditional_update(
        self,
        invitation_id: str,
        expected_state: TokenState,
        expected_attempts: int,
        changes: Dict[str, Any],
    ) -> bool:
        """
        Apply changes only if the stored state and attempt counter still
        match the expected values. Returns False on conflict.
        """
        pass

    @abstractmethod
    async def list_expired(
        self, now: datetime, limit: int = 500
    ) -> List[SupplierInvitation]:
        """Non-terminal invitations whose expires_at is in the past"""
        pass
