from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field

from magic_link.api.error import error_to_exception
from magic_link.api.utils.admin_auth import verify_admin_api_key
from magic_link.app.services.token_issuer import TokenIssuer
from magic_link.app.services.token_settings import TokenSettings
from magic_link.app.services.token_validator import TokenValidator
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.app.use_cases.invitations import (
    ConsumeInvitationResponse,
    ConsumeInvitationUseCase,
    CreateInvitationResponse,
    CreateInvitationUseCase,
    DeliveryEventResponse,
    RecordDeliveryEventUseCase,
    ResendInvitationResponse,
    ResendInvitationUseCase,
    RevokeInvitationResponse,
    RevokeInvitationUseCase,
    ValidateInvitationTokenUseCase,
    ValidateTokenResponse,
)
from magic_link.depends import (
    get_token_issuer,
    get_token_settings,
    get_token_validator,
    get_unit_of_work,
)

router = APIRouter(prefix="/invitations", tags=["Invitations"])


class CreateInvitationRequest(BaseModel):
    """
    Create invitation HTTP request payload

    Email syntax and expiry range are checked by the issuer so that bad
    values come back as INVALID_INPUT rather than a schema error.
    """

    email: str = Field(..., description="Supplier contact email")
    company_name: Optional[str] = Field(None, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    requester_id: Optional[str] = Field(None, max_length=255)
    requester_name: Optional[str] = Field(None, max_length=255)
    department_code: Optional[str] = Field(None, max_length=64)
    cost_center: Optional[str] = Field(None, max_length=64)
    expiry_days: Optional[int] = Field(None, description="Link lifetime in days (1-30)")


class ValidateTokenRequest(BaseModel):
    token: str = Field(..., description="Token from the magic link")


class RevokeInvitationRequest(BaseModel):
    revoked_by: str = Field("admin", min_length=1, max_length=255)
    reason: Optional[str] = Field(None, max_length=1000)


class ResendInvitationRequest(BaseModel):
    expiry_days: Optional[int] = Field(None, description="Link lifetime in days (1-30)")


class DeliveryEventRequest(BaseModel):
    event: str = Field(..., description="sent, delivered, opened or failed")
    reason: Optional[str] = Field(None, max_length=1000)


def client_address(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, or the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    if request.client:
        return request.client.host
    return None


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateInvitationResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def create_invitation(
    request: CreateInvitationRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: TokenSettings = Depends(get_token_settings),
):
    """
    Create Invitation

    Issues a magic link for a supplier. The token is only returned here
    (and on resend); the store keeps its hash.

    Raises:
        - 400 Bad Request: INVALID_INPUT
        - 401 Unauthorized: Missing or invalid admin API key
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = CreateInvitationUseCase(uow, issuer, settings.link_base_url)
    result = await use_case.execute(
        email=request.email,
        company_name=request.company_name,
        contact_name=request.contact_name,
        requester_id=request.requester_id,
        requester_name=request.requester_name,
        department_code=request.department_code,
        cost_center=request.cost_center,
        expiry_days=request.expiry_days,
    )

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


async def _validate(
    token: str, request: Request, uow: UnitOfWork, validator: TokenValidator
) -> ValidateTokenResponse:
    use_case = ValidateInvitationTokenUseCase(uow, validator)
    result = await use_case.execute(token, client_address(request))

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.post(
    "/validate",
    status_code=status.HTTP_200_OK,
    response_model=ValidateTokenResponse,
)
async def validate_invitation_token(
    body: ValidateTokenRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    validator: TokenValidator = Depends(get_token_validator),
):
    """
    Validate Invitation Token

    Called when a supplier opens the magic link. Counts as one validation
    attempt on success.

    Raises:
        - 400 Bad Request: INVALID_FORMAT, INVALID_CLAIMS
        - 401 Unauthorized: SIGNATURE_INVALID
        - 403 Forbidden: REVOKED, DELIVERY_FAILED
        - 404 Not Found: NOT_FOUND
        - 409 Conflict: ALREADY_CONSUMED
        - 410 Gone: TOKEN_EXPIRED
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED
        - 503 Service Unavailable: STORE_UNAVAILABLE, CONCURRENT_UPDATE
    """
    return await _validate(body.token, request, uow, validator)


@router.get(
    "/verify",
    status_code=status.HTTP_200_OK,
    response_model=ValidateTokenResponse,
)
async def verify_invitation_token(
    request: Request,
    token: str = Query(..., description="Token from the magic link"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    validator: TokenValidator = Depends(get_token_validator),
):
    """Same as POST /invitations/validate, for links opened directly"""
    return await _validate(token, request, uow, validator)


@router.post(
    "/{invitation_id}/revoke",
    status_code=status.HTTP_200_OK,
    response_model=RevokeInvitationResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def revoke_invitation(
    invitation_id: str,
    request: Optional[RevokeInvitationRequest] = None,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Revoke Invitation

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: ALREADY_CONSUMED, ALREADY_REVOKED, INVALID_STATE_TRANSITION
        - 503 Service Unavailable: STORE_UNAVAILABLE, CONCURRENT_UPDATE
    """
    request = request or RevokeInvitationRequest()

    use_case = RevokeInvitationUseCase(uow)
    result = await use_case.execute(invitation_id, request.revoked_by, request.reason)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.post(
    "/{invitation_id}/resend",
    status_code=status.HTTP_200_OK,
    response_model=ResendInvitationResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def resend_invitation(
    invitation_id: str,
    request: Optional[ResendInvitationRequest] = None,
    uow: UnitOfWork = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: TokenSettings = Depends(get_token_settings),
):
    """
    Resend Invitation

    Issues a fresh token for the same invitation; the previous link stops
    working and the validation counter starts over.

    Raises:
        - 400 Bad Request: INVALID_INPUT
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: ALREADY_CONSUMED
        - 503 Service Unavailable: STORE_UNAVAILABLE, CONCURRENT_UPDATE
    """
    expiry_days = request.expiry_days if request else None

    use_case = ResendInvitationUseCase(uow, issuer, settings.link_base_url)
    result = await use_case.execute(invitation_id, expiry_days)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.post(
    "/{invitation_id}/delivery-events",
    status_code=status.HTTP_200_OK,
    response_model=DeliveryEventResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def record_delivery_event(
    invitation_id: str,
    request: DeliveryEventRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Record Delivery Event

    Raises:
        - 400 Bad Request: INVALID_INPUT (unknown event)
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: INVALID_STATE_TRANSITION
        - 503 Service Unavailable: STORE_UNAVAILABLE, CONCURRENT_UPDATE
    """
    use_case = RecordDeliveryEventUseCase(uow)
    result = await use_case.execute(invitation_id, request.event, request.reason)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value


@router.post(
    "/{invitation_id}/consume",
    status_code=status.HTTP_200_OK,
    response_model=ConsumeInvitationResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def consume_invitation(
    invitation_id: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Consume Invitation

    Called once the supplier's onboarding submission is stored.

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 403 Forbidden: REVOKED, DELIVERY_FAILED
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: ALREADY_CONSUMED
        - 410 Gone: TOKEN_EXPIRED
        - 503 Service Unavailable: STORE_UNAVAILABLE, CONCURRENT_UPDATE
    """
    use_case = ConsumeInvitationUseCase(uow)
    result = await use_case.execute(invitation_id)

    if result.is_err():
        raise error_to_exception(result.error)

    return result.value
