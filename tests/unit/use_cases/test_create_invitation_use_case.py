import pytest

from magic_link.app.services.crypto import hash_token
from magic_link.app.use_cases.invitations import (
    CreateInvitationUseCase,
    ValidateInvitationTokenUseCase,
)
from magic_link.domain.entities import SupplierInvitation, TokenState
from magic_link.domain.errors import StoreUnavailableError

LINK_BASE = "https://suppliers.example.com"


@pytest.mark.asyncio
async def test_successful_create_invitation(mock_uow, issuer):
    """Record starts created with zero attempts and only the token hash"""
    # Arrange
    use_case = CreateInvitationUseCase(mock_uow, issuer, LINK_BASE)

    # Act
    result = await use_case.execute(
        email="supplier@acme.com",
        company_name="Acme",
        contact_name="Jane Doe",
        department_code="FIN",
    )

    # Assert
    assert result.is_ok()
    response = result.value
    assert response.token_state == "created"
    assert response.invitation_link.startswith(f"{LINK_BASE}/?token=")

    mock_uow.invitations.create.assert_called_once()
    invitation = mock_uow.invitations.create.call_args[0][0]
    assert isinstance(invitation, SupplierInvitation)
    assert invitation.id == response.invitation_id
    assert invitation.token_hash == hash_token(response.token)
    assert invitation.token_state == TokenState.created
    assert invitation.validation_attempts == 0
    assert invitation.email == "supplier@acme.com"
    assert invitation.company_name == "Acme"
    assert invitation.department_code == "FIN"
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_create_invitation_invalid_email(mock_uow, issuer):
    use_case = CreateInvitationUseCase(mock_uow, issuer, LINK_BASE)

    result = await use_case.execute(email="not-an-email")

    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"
    mock_uow.invitations.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_create_invitation_invalid_expiry(mock_uow, issuer):
    use_case = CreateInvitationUseCase(mock_uow, issuer, LINK_BASE)

    result = await use_case.execute(email="supplier@acme.com", expiry_days=45)

    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"
    mock_uow.invitations.create.assert_not_called()


@pytest.mark.asyncio
async def test_create_invitation_store_unavailable(mock_uow, issuer):
    mock_uow.invitations.create.side_effect = StoreUnavailableError("down")
    use_case = CreateInvitationUseCase(mock_uow, issuer, LINK_BASE)

    result = await use_case.execute(email="supplier@acme.com")

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_created_invitation_validates(fake_uow, invitations, issuer, validator):
    created = (
        await CreateInvitationUseCase(fake_uow, issuer, LINK_BASE).execute(
            email="supplier@acme.com"
        )
    ).value

    result = await ValidateInvitationTokenUseCase(fake_uow, validator).execute(
        created.token, "198.51.100.1"
    )

    assert result.is_ok()
    assert result.value.invitation_id == created.invitation_id
    assert result.value.token_state == "validated"
    assert result.value.validation_attempts == 1
    assert result.value.claims["supplier_email"] == "supplier@acme.com"
