"""
Admin API Routes - Maintenance Endpoints

Called by the scheduler, authenticated with the admin API key.
"""

from fastapi import APIRouter, Depends, Query, status

from magic_link.api.error import error_to_exception
from magic_link.api.utils.admin_auth import verify_admin_api_key
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.app.use_cases.invitations import (
    ExpireInvitationsResponse,
    ExpireInvitationsUseCase,
)
from magic_link.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/invitations/expire",
    status_code=status.HTTP_200_OK,
    response_model=ExpireInvitationsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def expire_invitations(
    batch_size: int = Query(500, ge=1, le=5000),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Expire Invitations

    Marks every non-terminal invitation past its expiry as expired.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ExpireInvitationsUseCase(uow)
    result = await use_case.execute(batch_size)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value
