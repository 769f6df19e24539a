import pytest

from magic_link.app.use_cases.invitations import ValidateInvitationTokenUseCase
from tests.unit.fakes import invitation_from_issued


async def _stored_token(issuer, invitations):
    issued = issuer.issue(email="supplier@acme.com", company_name="Acme").value
    await invitations.create(invitation_from_issued(issued))
    return issued


@pytest.mark.asyncio
async def test_successful_validation_commits(fake_uow, invitations, issuer, validator):
    issued = await _stored_token(issuer, invitations)
    use_case = ValidateInvitationTokenUseCase(fake_uow, validator)

    result = await use_case.execute(issued.token, "203.0.113.9")

    assert result.is_ok()
    assert result.value.valid is True
    assert result.value.company_name == "Acme"
    assert result.value.token_state == "validated"
    assert result.value.expires_at == issued.expires_at_datetime.isoformat()
    assert fake_uow.commits == 1


@pytest.mark.asyncio
async def test_denied_validation_returns_error(fake_uow, invitations, issuer, validator):
    issued = issuer.issue(email="supplier@acme.com").value
    use_case = ValidateInvitationTokenUseCase(fake_uow, validator)

    result = await use_case.execute(issued.token)

    assert result.is_err()
    assert result.error.code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_store_unavailable_skips_commit(fake_uow, invitations, issuer, validator):
    issued = await _stored_token(issuer, invitations)
    invitations.unavailable = True
    use_case = ValidateInvitationTokenUseCase(fake_uow, validator)

    result = await use_case.execute(issued.token)

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"
    assert fake_uow.commits == 0
    assert fake_uow.rollbacks == 1


@pytest.mark.asyncio
async def test_commit_failure_on_success_is_store_unavailable(
    fake_uow, invitations, issuer, validator
):
    issued = await _stored_token(issuer, invitations)
    fake_uow.fail_commit = True
    use_case = ValidateInvitationTokenUseCase(fake_uow, validator)

    result = await use_case.execute(issued.token)

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_commit_failure_on_denial_keeps_denial(
    fake_uow, invitations, issuer, validator, clock
):
    issued = await _stored_token(issuer, invitations)
    clock.advance(days=30)
    fake_uow.fail_commit = True
    use_case = ValidateInvitationTokenUseCase(fake_uow, validator)

    result = await use_case.execute(issued.token)

    assert result.is_err()
    assert result.error.code == "TOKEN_EXPIRED"
