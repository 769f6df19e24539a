"""
Validate Invitation Token Use Case

Entry point for the supplier clicking a magic link.
"""

import logging
from typing import Optional

from magic_link.app.services.token_validator import (
    TokenValidator,
    get_invitation_id_from_token,
)
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.errors import ErrorCode, StoreUnavailableError, store_unavailable
from magic_link.libs.result import Result, Return

from .dtos import ValidateTokenResponse

logger = logging.getLogger(__name__)


class ValidateInvitationTokenUseCase:
    """
    Use case for validating a supplier magic-link token.

    Runs the validator inside one unit of work so the attempt counter
    update and the state transition commit together. Every outcome is
    logged with the invitation id (when known) and the source address.
    """

    def __init__(self, uow: UnitOfWork, validator: TokenValidator):
        self.uow = uow
        self.validator = validator

    async def execute(
        self, token: str, source_address: Optional[str] = None
    ) -> Result[ValidateTokenResponse]:
        """
        Execute validate token use case.

        Args:
            token: Raw token from the magic link
            source_address: Client address for attribution

        Returns:
            Result with ValidateTokenResponse DTO, or Error
        """
        async with self.uow:
            result = await self.validator.validate(
                self.uow.invitations, token, source_address
            )

            if result.is_err() and result.error.code == ErrorCode.STORE_UNAVAILABLE:
                return result

            try:
                await self.uow.commit()
            except StoreUnavailableError as exc:
                if result.is_ok():
                    logger.error(f"Failed to commit validation: {exc}")
                    return Return.err(store_unavailable())
                # Only the best-effort expiry write-back was lost
                logger.warning(f"Failed to commit after denied validation: {exc}")

        if result.is_err():
            invitation_id = result.error.details.get(
                "invitation_id"
            ) or get_invitation_id_from_token(token)
            logger.warning(
                f"Token validation denied: code={result.error.code} "
                f"invitation={invitation_id} source={source_address}"
            )
            return Return.err(result.error)

        validation = result.value
        logger.info(
            f"Token validated: invitation={validation.invitation_id} "
            f"attempts={validation.validation_attempts} source={source_address}"
        )

        return Return.ok(
            ValidateTokenResponse(
                valid=True,
                invitation_id=validation.invitation_id,
                supplier_email=validation.supplier_email,
                company_name=validation.company_name,
                contact_name=validation.contact_name,
                token_state=validation.token_state.value,
                validation_attempts=validation.validation_attempts,
                expires_at=validation.expires_at.isoformat(),
                claims=validation.claims.model_dump(),
            )
        )
